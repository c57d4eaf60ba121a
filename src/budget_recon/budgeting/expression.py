"""Restricted arithmetic for the actual-spending line of a category cell.

Only numeric literals, ``+ - * /``, parentheses and spaces are accepted. The
text is tokenized and evaluated by a small recursive-descent parser with the
usual precedence (unary sign, then ``* /``, then ``+ -``); nothing is handed to
Python's own evaluator.
"""
from __future__ import annotations
import logging
import math
import re
from typing import List, Optional, Tuple

from budget_recon.core.money import DEFAULT_CURRENCY

logger = logging.getLogger(__name__)

NOT_A_NUMBER = float("nan")

_ALLOWED = re.compile(r"^[0-9+\-*/(). ]*$")
_TOKEN = re.compile(r"\s*(?:(\d+\.?\d*|\.\d+)|(.))")


class ExpressionError(ValueError):
  pass


def is_not_a_number(value: float) -> bool:
  return isinstance(value, float) and math.isnan(value)


def contribution(value: Optional[float]) -> float:
  """What a cell value adds to a sum: NotANumber and None count as 0."""
  if value is None or is_not_a_number(value):
    return 0.0
  return value


def _tokenize(expr: str) -> List[Tuple[str, str]]:
  tokens: List[Tuple[str, str]] = []
  pos = 0
  expr = expr.rstrip()
  while pos < len(expr):
    m = _TOKEN.match(expr, pos)
    if not m:
      raise ExpressionError(f"bad input at {pos}")
    num, op = m.group(1), m.group(2)
    if num is not None:
      tokens.append(("num", num))
    elif op in "+-*/()":
      tokens.append(("op", op))
    else:
      raise ExpressionError(f"unexpected {op!r}")
    pos = m.end()
  return tokens


class _Parser:
  def __init__(self, tokens: List[Tuple[str, str]]):
    self.tokens = tokens
    self.i = 0

  def _peek(self) -> Optional[str]:
    if self.i < len(self.tokens):
      return self.tokens[self.i][1]
    return None

  def _next(self) -> Tuple[str, str]:
    if self.i >= len(self.tokens):
      raise ExpressionError("unexpected end of expression")
    tok = self.tokens[self.i]
    self.i += 1
    return tok

  def parse(self) -> float:
    value = self._expr()
    if self.i != len(self.tokens):
      raise ExpressionError(f"trailing input {self._peek()!r}")
    return value

  def _expr(self) -> float:
    value = self._term()
    while self._peek() in ("+", "-"):
      op = self._next()[1]
      rhs = self._term()
      value = value + rhs if op == "+" else value - rhs
    return value

  def _term(self) -> float:
    value = self._factor()
    while self._peek() in ("*", "/"):
      op = self._next()[1]
      rhs = self._factor()
      if op == "*":
        value = value * rhs
      else:
        if rhs == 0:
          raise ExpressionError("division by zero")
        value = value / rhs
    return value

  def _factor(self) -> float:
    kind, text = self._next()
    if kind == "num":
      return float(text)
    if text == "+":
      return self._factor()
    if text == "-":
      return -self._factor()
    if text == "(":
      value = self._expr()
      if self._next()[1] != ")":
        raise ExpressionError("missing ')'")
      return value
    raise ExpressionError(f"unexpected {text!r}")


def evaluate_expression(expr: Optional[str], symbol: str = DEFAULT_CURRENCY) -> float:
  """Evaluate the text after ``=``.

  Empty text evaluates to 0.0 (nothing recorded yet). Anything outside the
  whitelist, any syntax error and any non-finite result give NOT_A_NUMBER.
  """
  s = (expr or "").strip()
  if symbol:
    s = s.replace(symbol, "").strip()
  if not s:
    return 0.0
  if not _ALLOWED.match(s):
    logger.debug("rejected expression %r", expr)
    return NOT_A_NUMBER
  try:
    value = _Parser(_tokenize(s)).parse()
  except (ExpressionError, OverflowError, RecursionError) as e:
    logger.debug("could not evaluate %r: %s", expr, e)
    return NOT_A_NUMBER
  if not math.isfinite(value):
    return NOT_A_NUMBER
  return value

"""
Expression engine for {{ }} templates and condition expressions.

Templates are strict path lookups into upstream outputs. Conditions use
simpleeval for safe expression evaluation (no eval() or exec()).
"""

from __future__ import annotations

import ast
import json
import logging
import math
import re
from typing import Any, Mapping

from simpleeval import (
    DEFAULT_FUNCTIONS,
    DEFAULT_OPERATORS,
    AttributeDoesNotExist,
    NameNotDefined,
    SimpleEval,
)

from ..core.exceptions import UnresolvedReferenceError

logger = logging.getLogger(__name__)

TEMPLATE_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")

_MISSING = object()


class ExpressionEngine:
    """
    Resolves templates and evaluates conditions against a read-only scope.

    The scope maps upstream node ids (and ``input``) to their outputs.
    """

    def __init__(self) -> None:
        self._setup_evaluator()

    def _setup_evaluator(self) -> None:
        """Set up the safe evaluator with allowed functions."""
        self.evaluator = SimpleEval()
        self.evaluator.operators = DEFAULT_OPERATORS.copy()

        self.evaluator.functions = {
            **DEFAULT_FUNCTIONS,
            # Type conversion
            "str": str,
            "int": int,
            "float": float,
            "bool": bool,
            # String functions
            "lower": lambda s: str(s).lower(),
            "upper": lambda s: str(s).upper(),
            "trim": lambda s: str(s).strip(),
            "includes": lambda s, search: search in str(s),
            "startswith": lambda s, prefix: str(s).startswith(prefix),
            "endswith": lambda s, suffix: str(s).endswith(suffix),
            "length": lambda x: len(x),
            # Math functions
            "abs": abs,
            "min": min,
            "max": max,
            "round": round,
            "floor": math.floor,
            "ceil": math.ceil,
            # JSON functions
            "json_parse": lambda s: json.loads(s) if s else None,
            # Type checking
            "is_empty": lambda v: v is None or v == "" or (isinstance(v, (list, dict)) and len(v) == 0),
            "is_none": lambda v: v is None,
            "get": lambda d, key, default=None: d.get(key, default) if isinstance(d, dict) else default,
        }

    # --- Templates ---

    def resolve(self, value: Any, scope: Mapping[str, Any]) -> Any:
        """
        Resolve all {{ }} references in a value.

        Handles strings, dicts and lists recursively.

        Raises:
            UnresolvedReferenceError: If a reference names a missing output.
        """
        if isinstance(value, str):
            return self._resolve_string(value, scope)

        if isinstance(value, list):
            return [self.resolve(item, scope) for item in value]

        if isinstance(value, dict):
            return {key: self.resolve(val, scope) for key, val in value.items()}

        return value

    def _resolve_string(self, string: str, scope: Mapping[str, Any]) -> Any:
        # A template that is exactly one reference keeps the value's type
        match = TEMPLATE_PATTERN.fullmatch(string.strip())
        if match:
            return self.lookup(match.group(1), scope)

        def replacer(m: re.Match[str]) -> str:
            return self.stringify(self.lookup(m.group(1), scope))

        return TEMPLATE_PATTERN.sub(replacer, string)

    def lookup(self, reference: str, scope: Mapping[str, Any]) -> Any:
        """Follow a dotted path such as ``fetch.items.0.title`` through the scope."""
        head, *path = reference.strip().split(".")
        if head not in scope:
            raise UnresolvedReferenceError(reference)

        current: Any = scope[head]
        for key in path:
            current = self._step(current, key)
            if current is _MISSING:
                raise UnresolvedReferenceError(reference)
        return current

    def _step(self, current: Any, key: str) -> Any:
        if isinstance(current, Mapping):
            return current.get(key, _MISSING)
        if isinstance(current, (list, tuple)) and key.lstrip("-").isdigit():
            index = int(key)
            return current[index] if -len(current) <= index < len(current) else _MISSING
        return _MISSING

    # --- Conditions ---

    def evaluate(self, expression: str, scope: Mapping[str, Any]) -> Any:
        """
        Evaluate a condition expression safely using simpleeval.

        Node ids are exposed under sanitised names (``fetch-page`` ->
        ``fetch_page``); dict fields are reachable with attribute syntax.

        Raises:
            UnresolvedReferenceError: If the expression names a missing
                node, field or index.
        """
        self.evaluator.names = {self.sanitize_name(k): v for k, v in scope.items()}
        try:
            return self.evaluator.eval(self._strip_braces(expression))
        except NameNotDefined as e:
            raise UnresolvedReferenceError(e.name) from e
        except AttributeDoesNotExist as e:
            raise UnresolvedReferenceError(str(e.attr)) from e
        except (KeyError, IndexError) as e:
            raise UnresolvedReferenceError(str(e)) from e

    def is_valid(self, expression: str) -> bool:
        """Check that a condition expression parses."""
        try:
            ast.parse(self._strip_braces(expression), mode="eval")
        except SyntaxError:
            logger.debug("Unparsable expression: %s", expression)
            return False
        return True

    def _strip_braces(self, expression: str) -> str:
        match = TEMPLATE_PATTERN.fullmatch(expression.strip())
        return match.group(1) if match else expression.strip()

    @staticmethod
    def sanitize_name(name: str) -> str:
        """Sanitize node id for use as variable name."""
        return re.sub(r"[^a-zA-Z0-9_]", "_", name)

    @staticmethod
    def stringify(value: Any) -> str:
        """Convert value to string for interpolation."""
        if value is None:
            return ""
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return str(value)


# Singleton instance
expression_engine = ExpressionEngine()

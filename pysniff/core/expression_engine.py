"""
Typed filter expressions over message records.

Filters are written in Python expression syntax, but only a small subset is
accepted: literals, schema field names, comparisons, boolean operators,
member access on dynamic values and a few helper functions. The text is
parsed with the ``ast`` module and walked directly; nothing is ever passed
to eval().

Examples:
    direction == "recv" and startswith(method, "/helloworld")
    content.name == "world" or has(error)
    stream_id == 3 and size(content["items"]) > 2
"""

import ast
import math
import operator
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .errors import EvaluationError, FilterSyntaxError, FilterTypeError
from .predicate_engine import PredicateEngine
from .schema import MESSAGE_SCHEMA, FieldType

STRING = FieldType.STRING
NUMBER = FieldType.NUMBER
BOOLEAN = FieldType.BOOLEAN
DYNAMIC = FieldType.DYNAMIC

_ALLOWED_NODES = (
    ast.Expression,
    ast.BoolOp, ast.And, ast.Or,
    ast.UnaryOp, ast.Not, ast.USub, ast.UAdd,
    ast.Compare, ast.Eq, ast.NotEq, ast.Lt, ast.LtE, ast.Gt, ast.GtE, ast.In, ast.NotIn,
    ast.Name, ast.Load, ast.Constant, ast.Attribute, ast.Subscript, ast.Call,
)

_ORDERING_OPS: Dict[type, Callable[[Any, Any], bool]] = {
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}

_OP_SYMBOLS = {
    ast.Eq: "==", ast.NotEq: "!=",
    ast.Lt: "<", ast.LtE: "<=", ast.Gt: ">", ast.GtE: ">=",
    ast.In: "in", ast.NotIn: "not in",
}

# Characters escaped when rendering string literals for quick filters
_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


@dataclass(frozen=True)
class _Function:
    params: Tuple[FieldType, ...]
    result: FieldType
    impl: Callable[..., Any]


_FUNCTIONS: Dict[str, _Function] = {
    "contains": _Function((STRING, STRING), BOOLEAN, lambda s, sub: sub in s),
    "startswith": _Function((STRING, STRING), BOOLEAN, lambda s, prefix: s.startswith(prefix)),
    "endswith": _Function((STRING, STRING), BOOLEAN, lambda s, suffix: s.endswith(suffix)),
    "lower": _Function((STRING,), STRING, lambda s: s.lower()),
    "size": _Function((DYNAMIC,), NUMBER, len),
    # matches() and has() are handled separately
    "matches": _Function((STRING, STRING), BOOLEAN, None),
    "has": _Function((DYNAMIC,), BOOLEAN, None),
}

HELP_TEXT = """\
Filters are boolean expressions over the message fields:

  message_id, stream_id, direction, time, method, message,
  peer_address, content, error

Operators:   ==  !=  <  <=  >  >=  in  not in  and  or  not
Literals:    "text", 42, 1.5, True, False
Members:     content.name, content["items"][0]
Functions:   contains(s, sub)  startswith(s, p)  endswith(s, p)
             matches(s, regex)  lower(s)  size(x)  has(field)

Examples:
  direction == "recv"
  "Hello" in method and not has(error)
  content.name == "world"

Click a value in the details pane to filter on it."""


def quote_string(value: str) -> str:
    """Render a string as a double-quoted literal the parser reads back."""
    out = []
    for ch in value:
        escaped = _STRING_ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif ord(ch) < 0x20 or ch == "\x7f":
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _type_name(field_type: FieldType) -> str:
    return field_type.value


def _compatible(left: FieldType, right: FieldType) -> bool:
    return left is DYNAMIC or right is DYNAMIC or left is right


@dataclass(frozen=True)
class ExpressionPredicate:
    """A parsed filter expression."""

    text: str
    tree: ast.Expression = field(repr=False)
    # Regexes from literal matches() patterns, compiled by check()
    patterns: Dict[str, "re.Pattern"] = field(default_factory=dict, repr=False, compare=False)


class ExpressionEngine(PredicateEngine):
    """Typed expression language with Python syntax."""

    name = "expression"
    help_text = HELP_TEXT

    def __init__(self, schema: Optional[Mapping[str, FieldType]] = None):
        self._schema = dict(schema if schema is not None else MESSAGE_SCHEMA)

    # === Parsing ===

    def parse(self, text: str) -> ExpressionPredicate:
        source = text.strip()
        if not source:
            raise FilterSyntaxError("empty expression", 0)
        try:
            tree = ast.parse(source, mode="eval")
        except SyntaxError as e:
            position = e.offset - 1 if e.offset else None
            raise FilterSyntaxError(e.msg, position) from None
        except (RecursionError, MemoryError):
            raise FilterSyntaxError("expression is too deeply nested") from None
        except ValueError as e:
            # e.g. NUL bytes in the source
            raise FilterSyntaxError(str(e)) from None

        for node in ast.walk(tree):
            if not isinstance(node, _ALLOWED_NODES):
                raise FilterSyntaxError(
                    f"unsupported syntax: {type(node).__name__}",
                    getattr(node, "col_offset", None),
                )
            if isinstance(node, ast.Constant):
                if node.value is None or not isinstance(node.value, (str, int, float, bool)):
                    raise FilterSyntaxError(f"unsupported literal: {node.value!r}", node.col_offset)
            elif isinstance(node, ast.Call):
                if not isinstance(node.func, ast.Name):
                    raise FilterSyntaxError("only plain function calls are allowed", node.col_offset)
                if node.keywords:
                    raise FilterSyntaxError("keyword arguments are not allowed", node.col_offset)

        return ExpressionPredicate(text=source, tree=tree)

    # === Type checking ===

    def check(self, predicate: ExpressionPredicate, schema: Mapping[str, FieldType]) -> None:
        try:
            result = self._infer(predicate.tree.body, schema, predicate)
        except RecursionError:
            raise FilterTypeError("expression is too deeply nested") from None
        if result not in (BOOLEAN, DYNAMIC):
            raise FilterTypeError(
                f"filter must be a boolean expression, got {_type_name(result)}"
            )

    def _infer(self, node: ast.AST, schema: Mapping[str, FieldType],
               predicate: ExpressionPredicate) -> FieldType:
        if isinstance(node, ast.Constant):
            if isinstance(node.value, bool):
                return BOOLEAN
            if isinstance(node.value, (int, float)):
                return NUMBER
            return STRING

        if isinstance(node, ast.Name):
            if node.id not in schema:
                raise FilterTypeError(f"undeclared reference to '{node.id}'")
            return schema[node.id]

        if isinstance(node, (ast.Attribute, ast.Subscript)):
            base = self._infer(node.value, schema, predicate)
            if base is not DYNAMIC:
                raise FilterTypeError(f"cannot access members of a {_type_name(base)} value")
            if isinstance(node, ast.Subscript):
                key = self._infer(node.slice, schema, predicate)
                if key not in (STRING, NUMBER, DYNAMIC):
                    raise FilterTypeError(f"cannot index with a {_type_name(key)} value")
            return DYNAMIC

        if isinstance(node, ast.UnaryOp):
            operand = self._infer(node.operand, schema, predicate)
            if isinstance(node.op, ast.Not):
                if operand not in (BOOLEAN, DYNAMIC):
                    raise FilterTypeError(f"'not' needs a boolean, got {_type_name(operand)}")
                return BOOLEAN
            if operand not in (NUMBER, DYNAMIC):
                raise FilterTypeError(f"unary sign needs a number, got {_type_name(operand)}")
            return NUMBER

        if isinstance(node, ast.BoolOp):
            keyword = "and" if isinstance(node.op, ast.And) else "or"
            for value in node.values:
                operand = self._infer(value, schema, predicate)
                if operand not in (BOOLEAN, DYNAMIC):
                    raise FilterTypeError(
                        f"'{keyword}' needs boolean operands, got {_type_name(operand)}"
                    )
            return BOOLEAN

        if isinstance(node, ast.Compare):
            types = [self._infer(node.left, schema, predicate)]
            types.extend(self._infer(c, schema, predicate) for c in node.comparators)
            for op, left, right in zip(node.ops, types, types[1:]):
                self._check_comparison(op, left, right)
            return BOOLEAN

        if isinstance(node, ast.Call):
            return self._infer_call(node, schema, predicate)

        raise FilterTypeError(f"unsupported expression: {type(node).__name__}")

    def _check_comparison(self, op: ast.cmpop, left: FieldType, right: FieldType) -> None:
        symbol = _OP_SYMBOLS[type(op)]
        if isinstance(op, (ast.In, ast.NotIn)):
            if right not in (STRING, DYNAMIC) or not _compatible(left, right):
                raise FilterTypeError(
                    f"cannot test {_type_name(left)} '{symbol}' {_type_name(right)}"
                )
            return
        if type(op) in _ORDERING_OPS:
            if left not in (NUMBER, STRING, DYNAMIC) or right not in (NUMBER, STRING, DYNAMIC):
                raise FilterTypeError(
                    f"cannot order {_type_name(left)} and {_type_name(right)} with '{symbol}'"
                )
        if not _compatible(left, right):
            raise FilterTypeError(
                f"cannot compare {_type_name(left)} with {_type_name(right)} using '{symbol}'"
            )

    def _infer_call(self, node: ast.Call, schema: Mapping[str, FieldType],
                    predicate: ExpressionPredicate) -> FieldType:
        name = node.func.id
        function = _FUNCTIONS.get(name)
        if function is None:
            raise FilterTypeError(f"unknown function '{name}'")
        if len(node.args) != len(function.params):
            raise FilterTypeError(
                f"{name}() takes {len(function.params)} argument(s), got {len(node.args)}"
            )

        if name == "has":
            arg = node.args[0]
            if not isinstance(arg, ast.Name):
                raise FilterTypeError("has() takes a field name")
            if arg.id not in schema:
                raise FilterTypeError(f"undeclared reference to '{arg.id}'")
            return BOOLEAN

        for index, (arg, param) in enumerate(zip(node.args, function.params), start=1):
            actual = self._infer(arg, schema, predicate)
            if not _compatible(param, actual):
                raise FilterTypeError(
                    f"{name}() argument {index} must be {_type_name(param)}, got {_type_name(actual)}"
                )

        if name == "matches":
            pattern = node.args[1]
            if isinstance(pattern, ast.Constant) and isinstance(pattern.value, str):
                try:
                    predicate.patterns[pattern.value] = re.compile(pattern.value)
                except re.error as e:
                    raise FilterTypeError(f"invalid regular expression: {e}") from None
        return function.result

    # === Evaluation ===

    def evaluate(self, predicate: ExpressionPredicate, fields: Mapping[str, Any]) -> bool:
        try:
            result = self._eval(predicate.tree.body, fields, predicate)
        except RecursionError:
            raise EvaluationError("expression is too deeply nested") from None
        if not isinstance(result, bool):
            raise EvaluationError(f"filter produced {type(result).__name__}, not a boolean")
        return result

    def _eval(self, node: ast.AST, fields: Mapping[str, Any],
              predicate: ExpressionPredicate) -> Any:
        if isinstance(node, ast.Constant):
            return node.value

        if isinstance(node, ast.Name):
            try:
                return fields[node.id]
            except KeyError:
                raise EvaluationError(f"field '{node.id}' is not present") from None

        if isinstance(node, ast.Attribute):
            return self._member(self._eval(node.value, fields, predicate), node.attr)

        if isinstance(node, ast.Subscript):
            base = self._eval(node.value, fields, predicate)
            return self._member(base, self._eval(node.slice, fields, predicate))

        if isinstance(node, ast.UnaryOp):
            value = self._eval(node.operand, fields, predicate)
            if isinstance(node.op, ast.Not):
                return not self._as_bool(value)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise EvaluationError(f"expected a number, got {type(value).__name__}")
            return -value if isinstance(node.op, ast.USub) else value

        if isinstance(node, ast.BoolOp):
            # Short-circuit the same way Python does
            if isinstance(node.op, ast.And):
                return all(self._as_bool(self._eval(v, fields, predicate)) for v in node.values)
            return any(self._as_bool(self._eval(v, fields, predicate)) for v in node.values)

        if isinstance(node, ast.Compare):
            left = self._eval(node.left, fields, predicate)
            for op, comparator in zip(node.ops, node.comparators):
                right = self._eval(comparator, fields, predicate)
                if not self._compare(op, left, right):
                    return False
                left = right
            return True

        if isinstance(node, ast.Call):
            return self._call(node, fields, predicate)

        raise EvaluationError(f"unsupported expression: {type(node).__name__}")

    @staticmethod
    def _member(base: Any, key: Any) -> Any:
        if isinstance(base, Mapping):
            try:
                if key in base:
                    return base[key]
            except TypeError:
                raise EvaluationError(f"cannot use a {type(key).__name__} as a member name") from None
            raise EvaluationError(f"no member {key!r}")
        if isinstance(base, list) and isinstance(key, int) and not isinstance(key, bool):
            try:
                return base[key]
            except IndexError:
                raise EvaluationError(f"index {key} out of range") from None
        raise EvaluationError(f"cannot look up {key!r} in {type(base).__name__}")

    @staticmethod
    def _as_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        raise EvaluationError(f"expected a boolean, got {type(value).__name__}")

    @staticmethod
    def _as_str(value: Any, context: str) -> str:
        if isinstance(value, str):
            return value
        raise EvaluationError(f"{context} needs a string, got {type(value).__name__}")

    def _compare(self, op: ast.cmpop, left: Any, right: Any) -> bool:
        if isinstance(op, (ast.In, ast.NotIn)):
            if isinstance(right, str):
                found = self._as_str(left, "'in'") in right
            elif isinstance(right, (list, dict)):
                try:
                    found = left in right
                except TypeError:
                    raise EvaluationError(
                        f"cannot search for a {type(left).__name__} in {type(right).__name__}"
                    ) from None
            else:
                raise EvaluationError(f"cannot search in {type(right).__name__}")
            return found if isinstance(op, ast.In) else not found
        if isinstance(op, ast.Eq):
            return left == right
        if isinstance(op, ast.NotEq):
            return left != right
        try:
            return _ORDERING_OPS[type(op)](left, right)
        except TypeError:
            raise EvaluationError(
                f"cannot order {type(left).__name__} and {type(right).__name__}"
            ) from None

    def _call(self, node: ast.Call, fields: Mapping[str, Any],
              predicate: ExpressionPredicate) -> Any:
        name = node.func.id
        if name == "has":
            return node.args[0].id in fields

        args = [self._eval(arg, fields, predicate) for arg in node.args]
        if name == "matches":
            text = self._as_str(args[0], "matches()")
            pattern_text = self._as_str(args[1], "matches()")
            pattern = predicate.patterns.get(pattern_text)
            if pattern is None:
                try:
                    pattern = re.compile(pattern_text)
                except re.error as e:
                    raise EvaluationError(f"invalid regular expression: {e}") from None
            return pattern.search(text) is not None

        function = _FUNCTIONS[name]
        for arg, param in zip(args, function.params):
            if param is STRING:
                self._as_str(arg, f"{name}()")
        if name == "size" and not isinstance(args[0], (str, list, dict)):
            raise EvaluationError(f"size() of {type(args[0]).__name__}")
        return function.impl(*args)

    # === Quick filters ===

    def quick_filter(self, field_name: str, value: Any) -> str:
        field_type = self._schema.get(field_name)
        if field_type is None:
            raise ValueError(f"unknown field '{field_name}'")
        if isinstance(value, Enum):
            value = value.value

        if isinstance(value, str):
            literal = quote_string(value)
        elif field_type is STRING:
            raise ValueError(f"field '{field_name}' holds text, got {type(value).__name__}")
        elif isinstance(value, bool):
            literal = "True" if value else "False"
        elif isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                raise ValueError(f"cannot filter on non-finite number {value!r}")
            literal = repr(value)
        else:
            raise ValueError(f"cannot build a quick filter for a {type(value).__name__} value")

        return f"{field_name} == {literal}"

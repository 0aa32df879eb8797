# src/routeflow/core/expressions.py
"""
Avaliador seguro de expressões de condição.

Nós condicionais (Decision, Switch, JobCondition, Filter, Validate)
avaliam expressões declaradas na configuração contra um escopo: o
registro corrente ou, no caso de JobCondition, as variáveis da execução.

As expressões usam um subconjunto restrito da sintaxe Python, analisado
com `ast` e validado por whitelist antes de qualquer avaliação. Não há
`eval()`.

Regras de escopo:
    - Nomes simples resolvem para chaves do escopo (`amount > 100`)
    - `row` referencia o escopo inteiro (`row['order id']`, `row.get('x', 0)`)
    - `true`, `false` e `null` são aceitos como aliases de True/False/None
    - Nomes ausentes do escopo avaliam para None

Operações permitidas:
    - Comparações (==, !=, <, >, <=, >=, in, not in, is, is not)
    - Operadores booleanos (and, or, not) e aritméticos (+, -, *, /, //, %)
    - Literais (str, números, bool, None, listas, tuplas, sets, dicts)
    - Subscrição (`tags[0]`, `row['campo']`)
    - Expressão condicional (`a if cond else b`)
    - Chamadas às funções da whitelist: len, str, int, float, abs, min,
      max, lower, upper

Erros:
    - ExpressionSyntaxError: texto não é uma expressão válida
    - ExpressionSecurityError: construção proibida
    - ExpressionEvaluationError: falha em runtime (tipo, divisão por zero...)

Limites explícitos:
    - Não decide o que fazer com falhas (responsabilidade de cada nó)
    - Não acessa atributos de objetos (exceto `row.get`)
"""

from __future__ import annotations

import ast
import operator
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping

from routeflow.core.exceptions import FlowException


@dataclass(frozen=True)
class ExpressionError(FlowException):
    """Base para falhas de expressão."""


@dataclass(frozen=True)
class ExpressionSyntaxError(ExpressionError):
    """Texto não é uma expressão Python válida."""


@dataclass(frozen=True)
class ExpressionSecurityError(ExpressionError):
    """Expressão contém construções proibidas."""


@dataclass(frozen=True)
class ExpressionEvaluationError(ExpressionError):
    """Expressão válida falhou ao ser avaliada contra o escopo."""


_COMPARISON_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
    ast.Is: operator.is_,
    ast.IsNot: operator.is_not,
    ast.In: lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
}

_UNARY_OPS: Dict[type, Callable[[Any], Any]] = {
    ast.Not: operator.not_,
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "len": len,
    "str": str,
    "int": int,
    "float": float,
    "abs": abs,
    "min": min,
    "max": max,
    "lower": lambda s: None if s is None else str(s).lower(),
    "upper": lambda s: None if s is None else str(s).upper(),
}

_CONSTANT_NAMES: Dict[str, Any] = {
    "True": True,
    "False": False,
    "None": None,
    "true": True,
    "false": False,
    "null": None,
}


def _is_row_get(node: ast.AST) -> bool:
    return (
        isinstance(node, ast.Attribute)
        and isinstance(node.value, ast.Name)
        and node.value.id == "row"
        and node.attr == "get"
    )


class _ExpressionValidator(ast.NodeVisitor):
    """Coleta construções proibidas; a expressão só é aceita sem erros."""

    def __init__(self) -> None:
        self.errors: List[str] = []

    def visit_Call(self, node: ast.Call) -> None:
        if node.keywords:
            self.errors.append("Keyword arguments are forbidden")
        if _is_row_get(node.func):
            if not 1 <= len(node.args) <= 2:
                self.errors.append(f"row.get() requires 1 or 2 arguments, got {len(node.args)}")
        elif not (isinstance(node.func, ast.Name) and node.func.id in _FUNCTIONS):
            self.errors.append(f"Forbidden function call: {ast.dump(node.func)}")
        for arg in node.args:
            self.visit(arg)

    def visit_Attribute(self, node: ast.Attribute) -> None:
        # row.get só é aceito como alvo de chamada (tratado em visit_Call)
        self.errors.append(f"Forbidden attribute access: {node.attr!r}")

    def visit_Compare(self, node: ast.Compare) -> None:
        for op in node.ops:
            if type(op) not in _COMPARISON_OPS:
                self.errors.append(f"Forbidden comparison operator: {type(op).__name__}")
        self.generic_visit(node)

    def visit_BinOp(self, node: ast.BinOp) -> None:
        if type(node.op) not in _BINARY_OPS:
            self.errors.append(f"Forbidden binary operator: {type(node.op).__name__}")
        self.generic_visit(node)

    def visit_UnaryOp(self, node: ast.UnaryOp) -> None:
        if type(node.op) not in _UNARY_OPS:
            self.errors.append(f"Forbidden unary operator: {type(node.op).__name__}")
        self.generic_visit(node)

    def visit_Constant(self, node: ast.Constant) -> None:
        if node.value is not None and not isinstance(node.value, (str, int, float, bool)):
            self.errors.append(f"Forbidden constant type: {type(node.value).__name__}")

    def visit_Slice(self, node: ast.Slice) -> None:
        self.errors.append("Slice syntax is forbidden")

    def visit_Dict(self, node: ast.Dict) -> None:
        if any(k is None for k in node.keys):
            self.errors.append("Dict spread (**) is forbidden")
        self.generic_visit(node)

    def generic_visit(self, node: ast.AST) -> None:
        allowed = (
            ast.Expression, ast.BoolOp, ast.And, ast.Or, ast.Compare, ast.BinOp,
            ast.UnaryOp, ast.IfExp, ast.Name, ast.Load, ast.Constant, ast.List,
            ast.Tuple, ast.Set, ast.Dict, ast.Subscript, ast.Call,
        ) + tuple(_COMPARISON_OPS) + tuple(_BINARY_OPS) + tuple(_UNARY_OPS)
        # Python < 3.9 embrulha subscrições em ast.Index
        index_type = getattr(ast, "Index", None)
        if index_type is not None:
            allowed = allowed + (index_type,)
        if not isinstance(node, allowed):
            self.errors.append(f"Forbidden construct: {type(node).__name__}")
            return
        super().generic_visit(node)


class _ExpressionEvaluator(ast.NodeVisitor):
    def __init__(self, scope: Mapping[str, Any]) -> None:
        self._scope = scope

    def visit_Expression(self, node: ast.Expression) -> Any:
        return self.visit(node.body)

    def visit_Name(self, node: ast.Name) -> Any:
        if node.id == "row":
            return self._scope
        if node.id in self._scope:
            return self._scope[node.id]
        if node.id in _CONSTANT_NAMES:
            return _CONSTANT_NAMES[node.id]
        return None

    def visit_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def visit_Index(self, node: Any) -> Any:  # pragma: no cover - Python < 3.9
        return self.visit(node.value)

    def visit_Subscript(self, node: ast.Subscript) -> Any:
        value = self.visit(node.value)
        key = self.visit(node.slice)
        try:
            return value[key]
        except KeyError as e:
            raise ExpressionEvaluationError(f"Field '{key}' not found") from e
        except IndexError as e:
            raise ExpressionEvaluationError(f"Index {key} out of range") from e
        except TypeError as e:
            raise ExpressionEvaluationError(f"Cannot access '{key}' on {type(value).__name__}") from e

    def visit_Call(self, node: ast.Call) -> Any:
        args = [self.visit(arg) for arg in node.args]
        if _is_row_get(node.func):
            func: Callable[..., Any] = self._scope.get
        else:
            func = _FUNCTIONS[node.func.id]  # type: ignore[attr-defined]
        try:
            return func(*args)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise ExpressionEvaluationError(f"call failed: {e}") from e

    def visit_Compare(self, node: ast.Compare) -> Any:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators):
            right = self.visit(comparator)
            try:
                if not _COMPARISON_OPS[type(op)](left, right):
                    return False
            except TypeError as e:
                raise ExpressionEvaluationError(
                    f"cannot compare {type(left).__name__} and {type(right).__name__}"
                ) from e
            left = right
        return True

    def visit_BoolOp(self, node: ast.BoolOp) -> Any:
        result: Any = None
        if isinstance(node.op, ast.And):
            for value in node.values:
                result = self.visit(value)
                if not result:
                    return result
            return result
        for value in node.values:
            result = self.visit(value)
            if result:
                return result
        return result

    def visit_BinOp(self, node: ast.BinOp) -> Any:
        left = self.visit(node.left)
        right = self.visit(node.right)
        try:
            return _BINARY_OPS[type(node.op)](left, right)
        except ZeroDivisionError as e:
            raise ExpressionEvaluationError("division by zero") from e
        except (TypeError, ValueError, ArithmeticError) as e:
            raise ExpressionEvaluationError(
                f"cannot apply {type(node.op).__name__} to {type(left).__name__} and {type(right).__name__}"
            ) from e

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        operand = self.visit(node.operand)
        try:
            return _UNARY_OPS[type(node.op)](operand)
        except (TypeError, ValueError, ArithmeticError) as e:
            raise ExpressionEvaluationError(f"cannot apply unary operator to {type(operand).__name__}") from e

    def visit_List(self, node: ast.List) -> Any:
        return [self.visit(elt) for elt in node.elts]

    def visit_Tuple(self, node: ast.Tuple) -> Any:
        return tuple(self.visit(elt) for elt in node.elts)

    def visit_Set(self, node: ast.Set) -> Any:
        try:
            return {self.visit(elt) for elt in node.elts}
        except TypeError as e:
            raise ExpressionEvaluationError(f"cannot create set literal: {e}") from e

    def visit_Dict(self, node: ast.Dict) -> Any:
        try:
            return {self.visit(k): self.visit(v) for k, v in zip(node.keys, node.values)}
        except TypeError as e:
            raise ExpressionEvaluationError(f"cannot create dict literal: {e}") from e

    def visit_IfExp(self, node: ast.IfExp) -> Any:
        if self.visit(node.test):
            return self.visit(node.body)
        return self.visit(node.orelse)


class CompiledExpression:
    """Expressão analisada e validada, pronta para avaliação repetida."""

    def __init__(self, expression: str) -> None:
        if not isinstance(expression, str) or not expression.strip():
            raise ExpressionSyntaxError("expression must be a non-empty string")
        self.expression = expression.strip()

        try:
            self._ast = ast.parse(self.expression, mode="eval")
        except SyntaxError as e:
            raise ExpressionSyntaxError(
                f"Invalid syntax: {e.msg}",
                details={"expression": self.expression},
            ) from e

        validator = _ExpressionValidator()
        validator.visit(self._ast)
        if validator.errors:
            raise ExpressionSecurityError(
                "; ".join(validator.errors),
                details={"expression": self.expression},
            )

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        return _ExpressionEvaluator(scope).visit(self._ast)

    def __repr__(self) -> str:
        return f"CompiledExpression({self.expression!r})"


@lru_cache(maxsize=512)
def compile_expression(expression: str) -> CompiledExpression:
    """Analisa e valida `expression` (resultado em cache por texto)."""
    return CompiledExpression(expression)


def evaluate(expression: str, scope: Mapping[str, Any]) -> Any:
    """Avalia `expression` contra `scope` (registro ou variáveis da execução)."""
    return compile_expression(expression).evaluate(scope)


def is_true(value: Any) -> bool:
    """Somente o booleano `True` conta como condição satisfeita."""
    return isinstance(value, bool) and value

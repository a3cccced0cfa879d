#!/usr/bin/env python
"""
Reads transition systems written as Python expressions.

    variables: {x: int, y: int, f: bool, b: bv8}
    init:  x == 0 and y == 0
    trans: next(x) == x + 1 and next(y) == (y + 1 if f else y)
    error: x == 2 and y == 5

Supported are boolean connectives, (chained) comparisons, arithmetic,
bit operators on bit-vectors, `a if c else b`, `ite(c, a, b)`,
`implies(a, b)`, `iff(a, b)` and `next(x)` for the next-state value of a
variable. Every syntax or sort error is reported as ModelError.
"""

import ast
import os
import re

from typing import Dict, Optional

import yaml

from pysmt.shortcuts import (
    Symbol, TRUE, FALSE, Int, Real, BV, And, Or, Not, Implies, Iff, Ite,
    Plus, Minus, Times, Div, EqualsOrIff, LT, LE, GT, GE, ToReal,
    BVAdd, BVSub, BVMul, BVSDiv, BVSRem, BVNeg, BVNot, BVAnd, BVOr, BVXor,
    BVLShl, BVAShr, BVSLT, BVSLE, BVSGT, BVSGE,
)
from pysmt.typing import BOOL, INT, REAL, BVType, PySMTType
from pysmt.fnode import FNode
from pysmt.exceptions import PysmtException

from pysts.errors import ModelError
from pysts.sts import STS, PRIME

from pysts import log


def parse_sort(sort : str) -> PySMTType:
    sort = str(sort).strip().lower()
    match sort:
        case 'bool':
            return BOOL
        case 'int':
            return INT
        case 'real':
            return REAL
    m = re.fullmatch(r'bv(\d+)', sort)
    if m and int(m.group(1)) > 0:
        return BVType(int(m.group(1)))
    raise ModelError(f"unknown sort '{sort}' (expected bool, int, real or bv<N>)")


# --------------------------------------------------------------------------- #
# operand coercion
# --------------------------------------------------------------------------- #
def _bv_constant(value : int, width : int) -> FNode:
    return BV(value % (1 << width), width)


def _unify(lhs : FNode, rhs : FNode):
    """ integer literals adopt the sort of the other operand """
    lt, rt = lhs.get_type(), rhs.get_type()
    if lt == rt:
        return lhs, rhs
    if lt.is_bv_type() and rhs.is_int_constant():
        return lhs, _bv_constant(rhs.constant_value(), lt.width)
    if rt.is_bv_type() and lhs.is_int_constant():
        return _bv_constant(lhs.constant_value(), rt.width), rhs
    if lt.is_real_type() and rt.is_int_type():
        return lhs, ToReal(rhs)
    if rt.is_real_type() and lt.is_int_type():
        return ToReal(lhs), rhs
    raise ModelError(f"operands '{lhs}' ({lt}) and '{rhs}' ({rt}) have different sorts")


def _arith(op_type, lhs : FNode, rhs : FNode) -> FNode:
    lhs, rhs = _unify(lhs, rhs)
    sort = lhs.get_type()
    if sort.is_bool_type():
        match op_type:
            case ast.BitAnd(): return And(lhs, rhs)
            case ast.BitOr():  return Or(lhs, rhs)
            case ast.BitXor(): return Not(Iff(lhs, rhs))
    elif sort.is_bv_type():
        match op_type:
            case ast.Add():      return BVAdd(lhs, rhs)
            case ast.Sub():      return BVSub(lhs, rhs)
            case ast.Mult():     return BVMul(lhs, rhs)
            case ast.Div() | ast.FloorDiv(): return BVSDiv(lhs, rhs)
            case ast.Mod():      return BVSRem(lhs, rhs)
            case ast.BitAnd():   return BVAnd(lhs, rhs)
            case ast.BitOr():    return BVOr(lhs, rhs)
            case ast.BitXor():   return BVXor(lhs, rhs)
            case ast.LShift():   return BVLShl(lhs, rhs)
            case ast.RShift():   return BVAShr(lhs, rhs)
    else:
        match op_type:
            case ast.Add():  return Plus(lhs, rhs)
            case ast.Sub():  return Minus(lhs, rhs)
            case ast.Mult(): return Times(lhs, rhs)
            case ast.Div() if sort.is_real_type(): return Div(lhs, rhs)
    raise ModelError(f"operator {type(op_type).__name__} is not supported on {sort}")


def _compare(op_type, lhs : FNode, rhs : FNode) -> FNode:
    lhs, rhs = _unify(lhs, rhs)
    match op_type:
        case ast.Eq():    return EqualsOrIff(lhs, rhs)
        case ast.NotEq(): return Not(EqualsOrIff(lhs, rhs))
    sort = lhs.get_type()
    if sort.is_bv_type():
        match op_type:
            case ast.Lt():  return BVSLT(lhs, rhs)
            case ast.LtE(): return BVSLE(lhs, rhs)
            case ast.Gt():  return BVSGT(lhs, rhs)
            case ast.GtE(): return BVSGE(lhs, rhs)
    elif not sort.is_bool_type():
        match op_type:
            case ast.Lt():  return LT(lhs, rhs)
            case ast.LtE(): return LE(lhs, rhs)
            case ast.Gt():  return GT(lhs, rhs)
            case ast.GtE(): return GE(lhs, rhs)
    raise ModelError(f"comparison {type(op_type).__name__} is not supported on {sort}")


def _negate(operand : FNode) -> FNode:
    sort = operand.get_type()
    if operand.is_int_constant():
        return Int(-operand.constant_value())
    if operand.is_real_constant():
        return Real(-operand.constant_value())
    if sort.is_bv_type():
        return BVNeg(operand)
    if sort.is_int_type():
        return Minus(Int(0), operand)
    if sort.is_real_type():
        return Minus(Real(0), operand)
    raise ModelError(f"cannot negate '{operand}' of sort {sort}")


# --------------------------------------------------------------------------- #
# expression translation
# --------------------------------------------------------------------------- #
class ExpressionTranslator:
    """ translates Python expressions over the declared variables into pysmt formulas """
    def __init__(self, variables : Dict[str, FNode]):
        self.variables = variables

    def symbol(self, name : str, primed : bool = False) -> FNode:
        var = self.variables.get(name)
        if var is None:
            # left to STS validation, which reports the undeclared name
            log.printer.log_debug(5, f"[Frontend DEBUG] undeclared variable '{name}'")
            return Symbol(name + PRIME if primed else name, INT)
        if primed:
            return Symbol(name + PRIME, var.symbol_type())
        return var

    def translate(self, text) -> FNode:
        if isinstance(text, bool):
            return TRUE() if text else FALSE()
        try:
            tree = ast.parse(str(text).strip(), mode='eval')
        except SyntaxError as e:
            raise ModelError(f"syntax error in '{text}': {e.msg}") from e
        try:
            return self.expr(tree.body)
        except PysmtException as e:
            raise ModelError(f"ill-sorted expression '{text}': {e}") from e

    def expr(self, node : ast.AST) -> FNode:
        match node:
            case ast.Name(id=v):
                return self.symbol(v)

            case ast.Constant(value=v):
                if isinstance(v, bool): return TRUE() if v else FALSE()
                if isinstance(v, int):  return Int(v)
                if isinstance(v, float): return Real(v)
                raise ModelError(f"unsupported constant {v!r}")

            case ast.BinOp(left=l, op=op_type, right=r):
                return _arith(op_type, self.expr(l), self.expr(r))

            case ast.BoolOp(op=ast.And(), values=vs):
                return And([self.expr(v) for v in vs])
            case ast.BoolOp(op=ast.Or(), values=vs):
                return Or([self.expr(v) for v in vs])

            case ast.UnaryOp(op=ast.Not(), operand=o):
                return Not(self.expr(o))
            case ast.UnaryOp(op=ast.USub(), operand=o):
                return _negate(self.expr(o))
            case ast.UnaryOp(op=ast.UAdd(), operand=o):
                return self.expr(o)
            case ast.UnaryOp(op=ast.Invert(), operand=o):
                operand = self.expr(o)
                if not operand.get_type().is_bv_type():
                    raise ModelError(f"'~' needs a bit-vector operand, got '{operand}'")
                return BVNot(operand)

            case ast.Compare(left=l, ops=ops, comparators=comps):
                # a < b < c  =>  (a < b) & (b < c)
                conjuncts = []
                lhs = self.expr(l)
                for op_type, c in zip(ops, comps):
                    rhs = self.expr(c)
                    conjuncts.append(_compare(op_type, lhs, rhs))
                    lhs = rhs
                return conjuncts[0] if len(conjuncts) == 1 else And(conjuncts)

            case ast.IfExp(test=t, body=b, orelse=o):
                then_, else_ = _unify(self.expr(b), self.expr(o))
                return Ite(self.expr(t), then_, else_)

            case ast.Call(func=ast.Name(id='next'), args=[ast.Name(id=v)], keywords=[]):
                return self.symbol(v, primed=True)
            case ast.Call(func=ast.Name(id='ite'), args=[c, b, o], keywords=[]):
                then_, else_ = _unify(self.expr(b), self.expr(o))
                return Ite(self.expr(c), then_, else_)
            case ast.Call(func=ast.Name(id='implies'), args=[a, b], keywords=[]):
                return Implies(self.expr(a), self.expr(b))
            case ast.Call(func=ast.Name(id='iff'), args=[a, b], keywords=[]):
                return Iff(self.expr(a), self.expr(b))

            case _:
                raise ModelError(f"unsupported expression '{ast.unparse(node)}'")


# --------------------------------------------------------------------------- #
# transition systems
# --------------------------------------------------------------------------- #
def parse_sts(variables, init, trans, error, invariant=None, name : str = 'sts') -> STS:
    """
    `variables` maps names to sorts ('bool', 'int', 'real', 'bv<N>'), a
    list of (name, sort) pairs keeps the declaration order explicit.
    """
    items = variables.items() if isinstance(variables, dict) else variables
    declared: Dict[str, FNode] = {}
    symbols = []
    for var_name, sort in items:
        var_name = str(var_name)
        if var_name in declared:
            raise ModelError(f"variable '{var_name}' declared twice")
        try:
            var = Symbol(var_name, parse_sort(sort))
        except PysmtException as e:
            raise ModelError(f"cannot declare '{var_name}' as {sort}: {e}") from e
        declared[var_name] = var
        symbols.append(var)

    translator = ExpressionTranslator(declared)
    return STS(
            symbols,
            init=translator.translate(init),
            trans=translator.translate(trans),
            error=translator.translate(error),
            invariant=translator.translate(invariant) if invariant is not None else None,
            name=name
    )


def sts_from_yml(yml, name : Optional[str] = None) -> STS:
    if not isinstance(yml, dict):
        raise ModelError('model file must contain a mapping')
    for key in ('variables', 'init', 'trans', 'error'):
        if key not in yml:
            raise ModelError(f"model file lacks '{key}'")
    return parse_sts(
            yml['variables'] or {},
            yml['init'],
            yml['trans'],
            yml['error'],
            invariant=yml.get('invariant'),
            name=str(yml.get('name', name or 'sts'))
    )


def load_sts(path : str) -> STS:
    with open(path, 'r') as file:
        try:
            yml = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise ModelError(f"cannot read {path}: {e}") from e
    return sts_from_yml(yml, os.path.splitext(os.path.basename(path))[0])

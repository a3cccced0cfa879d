#!/usr/bin/env python3
"""
Symbolic transition systems.

An STS is a set of typed variables together with an initial-state formula,
a transition formula over current and next-state (primed) variables, an
error predicate and an optional invariant that constrains every state.
The model is validated once on construction and read-only afterwards.

The Unroller maps formulas of the STS to step-indexed copies (x -> x#i,
x' -> x#(i+1)) as needed for path formulas and back.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence

from pysmt.shortcuts import Symbol, TRUE, And, substitute
from pysmt.fnode import FNode
from pysmt.typing import PySMTType
from pysmt.exceptions import PysmtTypeError

from pysts.errors import ModelError


PRIME = "'"
INDEX = '#'


def default_value(sort : PySMTType):
    if sort.is_bool_type():
        return False
    if sort.is_real_type():
        return 0.0
    return 0


class STS:
    def __init__(self,
                 variables : Sequence[FNode],
                 init : FNode,
                 trans : FNode,
                 error : FNode,
                 invariant : Optional[FNode] = None,
                 name : str = 'sts'):
        self._variables = tuple(variables)
        self._init = init
        self._trans = trans
        self._error = error
        self._invariant = invariant if invariant is not None else TRUE()
        self._name = name

        self._by_name: Dict[str, FNode] = {}
        self._primed: Dict[FNode, FNode] = {}
        self._validate()

    # accessors ------------------------------------------------------
    @property
    def name(self) -> str:
        return self._name

    @property
    def variables(self):
        return self._variables

    @property
    def init(self) -> FNode:
        return self._init

    @property
    def trans(self) -> FNode:
        return self._trans

    @property
    def error(self) -> FNode:
        return self._error

    @property
    def invariant(self) -> FNode:
        return self._invariant

    def variable(self, name : str) -> FNode:
        return self._by_name[name]

    def prime(self, formula : FNode) -> FNode:
        """ replaces every state variable by its next-state copy """
        return substitute(formula, self._primed)

    def next_var(self, var : FNode) -> FNode:
        return self._primed[var]

    def next_vars(self) -> List[FNode]:
        return [self._primed[v] for v in self._variables]

    def __str__(self):
        return '%s(%s)' % (self._name, ', '.join('%s: %s' % (v.symbol_name(), v.symbol_type()) for v in self._variables))

    # validation -----------------------------------------------------
    def _validate(self):
        for var in self._variables:
            if not isinstance(var, FNode) or not var.is_symbol():
                raise ModelError(f"variable {var} is not a symbol")
            name = var.symbol_name()
            if PRIME in name or INDEX in name:
                raise ModelError(f"variable name '{name}' must not contain {PRIME!r} or {INDEX!r}")
            if name in self._by_name:
                raise ModelError(f"variable '{name}' declared twice")
            if var.symbol_type().is_function_type():
                raise ModelError(f"variable '{name}' has unsupported sort {var.symbol_type()}")
            self._by_name[name] = var
            try:
                self._primed[var] = Symbol(name + PRIME, var.symbol_type())
            except PysmtTypeError as e:
                raise ModelError(f"next-state copy {name + PRIME!r} of {var.symbol_type()} variable clashes with an existing symbol: {e}") from e

        self._check_formula('init', self._init, allow_next=False)
        self._check_formula('invariant', self._invariant, allow_next=False)
        self._check_formula('error', self._error, allow_next=False)
        self._check_formula('trans', self._trans, allow_next=True)

    def _check_formula(self, what : str, formula : FNode, allow_next : bool):
        if not isinstance(formula, FNode):
            raise ModelError(f"{what} is not a formula: {formula!r}")
        if not formula.get_type().is_bool_type():
            raise ModelError(f"{what} formula has sort {formula.get_type()}, expected Bool")

        for symbol in formula.get_free_variables():
            name = symbol.symbol_name()
            is_next = name.endswith(PRIME)
            base = name[:-1] if is_next else name
            if base not in self._by_name:
                raise ModelError(f"{what} formula references undeclared variable '{name}'")
            if is_next and not allow_next:
                raise ModelError(f"{what} formula references next-state variable '{name}'")
            declared = self._by_name[base].symbol_type()
            if symbol.symbol_type() != declared:
                raise ModelError(f"{what} formula uses '{name}' as {symbol.symbol_type()}, declared as {declared}")


class Trace:
    """ concrete execution: one valuation (name -> value) per step """
    def __init__(self, states : List[Dict[str, object]]):
        self.states = states

    @property
    def length(self) -> int:
        """ number of transitions """
        return len(self.states) - 1

    def values(self, name : str) -> list:
        return [s[name] for s in self.states]

    def __str__(self):
        return '\n'.join(
            '%d: %s' % (i, ', '.join('%s=%s' % (k, v) for k, v in s.items()))
            for i, s in enumerate(self.states)
        )


class Unroller:
    def __init__(self, sts : STS):
        self.sts = sts
        self._indexed: Dict[tuple, FNode] = {}

    def indexed(self, var : FNode, i : int) -> FNode:
        key = (var, i)
        if key not in self._indexed:
            self._indexed[key] = Symbol(f"{var.symbol_name()}{INDEX}{i}", var.symbol_type())
        return self._indexed[key]

    def indexed_vars(self, i : int) -> List[FNode]:
        return [self.indexed(v, i) for v in self.sts.variables]

    def unroll(self, formula : FNode, i : int) -> FNode:
        substitution = {}
        for var in self.sts.variables:
            substitution[var] = self.indexed(var, i)
            substitution[self.sts.next_var(var)] = self.indexed(var, i + 1)
        return substitute(formula, substitution)

    def init(self, i : int = 0) -> FNode:
        return self.unroll(self.sts.init, i)

    def trans(self, i : int) -> FNode:
        return self.unroll(self.sts.trans, i)

    def inv(self, i : int) -> FNode:
        return self.unroll(self.sts.invariant, i)

    def error(self, i : int) -> FNode:
        return self.unroll(self.sts.error, i)

    def path(self, length : int) -> List[FNode]:
        """
        Blocks of the path formula of `length` transitions:
        [init@0 & inv@0, trans@0 & inv@1, ..., trans@(n-1) & inv@n, error@n]
        """
        blocks = [And(self.init(0), self.inv(0))]
        for i in range(length):
            blocks.append(And(self.trans(i), self.inv(i + 1)))
        blocks.append(self.error(length))
        return blocks

    def fold_in(self, formula : FNode, i : int) -> FNode:
        return substitute(formula, { self.indexed(v, i) : v for v in self.sts.variables })

    def unindex(self, formula : FNode) -> FNode:
        """ drops the step index of every indexed variable, e.g. (x#1 > y#0) -> (x > y) """
        substitution = {}
        for symbol in formula.get_free_variables():
            name = symbol.symbol_name()
            if INDEX in name:
                substitution[symbol] = self.sts.variable(name.split(INDEX)[0])
        return substitute(formula, substitution)

    def concrete_state(self, model : Dict[FNode, FNode], i : int) -> Dict[str, object]:
        state = {}
        for var in self.sts.variables:
            value = model.get(self.indexed(var, i))
            if value is None:
                state[var.symbol_name()] = default_value(var.symbol_type())
            else:
                state[var.symbol_name()] = _py_value(value)
        return state

    def extract_trace(self, model : Dict[FNode, FNode], length : int) -> Trace:
        return Trace([self.concrete_state(model, i) for i in range(length + 1)])

    def step_terms(self, length : int) -> List[FNode]:
        return [self.indexed(v, i) for i in range(length + 1) for v in self.sts.variables]


def _py_value(value : FNode):
    if value.is_bool_constant():
        return value.is_true()
    constant = value.constant_value()
    if value.is_real_constant():
        return float(constant)
    return constant

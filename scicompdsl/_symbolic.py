#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Conversion of expression trees to and from SymEngine, which is used for symbolic linear algebra.
"""

from functools import reduce
from numbers import Integral
import operator

import symengine

from scicompdsl._expressions import Constant, Variable, Operation, Derivative, to_source

_to_symengine_functions = {
		"sin": symengine.sin,
		"cos": symengine.cos,
		"tan": symengine.tan,
		"exp": symengine.exp,
		"log": symengine.log,
		"sqrt": symengine.sqrt,
		"sinh": symengine.sinh,
		"cosh": symengine.cosh,
		"tanh": symengine.tanh,
		"abs": symengine.Abs,
	}

# exp and sqrt are represented as powers by SymEngine
_from_symengine_functions = {
		"sin": "sin",
		"cos": "cos",
		"tan": "tan",
		"log": "log",
		"sinh": "sinh",
		"cosh": "cosh",
		"tanh": "tanh",
		"Abs": "abs",
	}

_binary = {
		"-": operator.sub,
		"/": operator.truediv,
		"^": operator.pow,
	}

def to_symengine(expression, symbols):
	"""
	Converts `expression` to SymEngine. `symbols` is a dictionary mapping variables to SymEngine symbols; it is extended by every variable not yet contained in it.
	"""
	if isinstance(expression,Constant):
		value = expression.value
		return symengine.sympify(int(value) if isinstance(value,Integral) else float(value))

	elif isinstance(expression,Variable):
		if expression not in symbols:
			name = to_source(expression)
			if any(symbol.name==name for symbol in symbols.values()):
				raise ValueError("Two different variables are named %s." % name)
			symbols[expression] = symengine.Symbol(name)
		return symbols[expression]

	elif isinstance(expression,Operation):
		args = [ to_symengine(arg,symbols) for arg in expression.args ]
		if expression.op=="+":
			return reduce(operator.add,args)
		elif expression.op=="*":
			return reduce(operator.mul,args)
		elif expression.op in _binary:
			return _binary[expression.op](*args)
		else:
			return _to_symengine_functions[expression.op](*args)

	elif isinstance(expression,Derivative):
		raise ValueError("Unresolved derivatives cannot be converted to SymEngine.")

	raise TypeError("Not an expression: %r" % (expression,))

def from_symengine(expression, variables):
	"""
	Converts a SymEngine expression back to an expression tree. `variables` is a dictionary mapping symbol names to the variables they stand for.
	"""
	if isinstance(expression,symengine.Symbol):
		return variables[expression.name]

	elif isinstance(expression,symengine.Integer):
		return Constant(int(expression))

	elif isinstance(expression,symengine.Add):
		return Operation("+",[from_symengine(arg,variables) for arg in expression.args])

	elif isinstance(expression,symengine.Mul):
		return Operation("*",[from_symengine(arg,variables) for arg in expression.args])

	elif isinstance(expression,symengine.Pow):
		base,exponent = expression.args
		if base==symengine.E:
			return Operation("exp",[from_symengine(exponent,variables)])
		return Operation("^",[from_symengine(base,variables),from_symengine(exponent,variables)])

	elif type(expression).__name__ in _from_symengine_functions:
		return Operation(
				_from_symengine_functions[type(expression).__name__],
				[from_symengine(arg,variables) for arg in expression.args]
			)

	elif not expression.free_symbols:
		return Constant(float(expression))

	raise NotImplementedError("Cannot convert %s from SymEngine." % expression)

def symbolic_inverse(matrix):
	"""
	Inverts a square matrix of expressions (given as a list of rows) symbolically and returns the inverse as a list of rows.
	"""
	n = len(matrix)
	if any(len(row)!=n for row in matrix):
		raise ValueError("Only square matrices can be inverted, but the matrix has %i rows of lengths %s." % (n,[len(row) for row in matrix]))
	if n==0:
		return []

	symbols = {}
	converted = symengine.Matrix([
			[ to_symengine(entry,symbols) for entry in row ]
			for row in matrix
		])
	inverse = converted.inv()

	variables = { symbol.name:variable for variable,symbol in symbols.items() }
	return [
			[ from_symengine(inverse[i,j],variables) for j in range(n) ]
			for i in range(n)
		]

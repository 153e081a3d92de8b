#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Symbolic expression trees and the operations on them: structural equality, substitution, differentiation, constant folding and printing to Python source.

The node kinds are `Constant`, `Variable` (possibly carrying a `Differential`), `Operation` and the unresolved `Derivative`. All functions operating on trees dispatch over exactly these kinds.
"""

from keyword import iskeyword
from numbers import Number, Integral
from itertools import chain

SUBTYPES = ("IndependentVariable", "DependentVariable", "Unknown", "Parameter")

#: arity of each supported operation; `None` means n-ary
ARITY = {
		"+": None,
		"*": None,
		"-": 2,
		"/": 2,
		"^": 2,
		"sin": 1, "cos": 1, "tan": 1,
		"exp": 1, "log": 1, "sqrt": 1,
		"sinh": 1, "cosh": 1, "tanh": 1,
		"abs": 1,
	}

FUNCTIONS = tuple( op for op,arity in ARITY.items() if arity==1 )

_INFIX = { "+":" + ", "-":" - ", "*":"*", "/":"/", "^":"**" }

def _as_expression(value):
	if isinstance(value,Expression):
		return value
	elif isinstance(value,Number) and not isinstance(value,complex):
		return Constant(value)
	else:
		raise TypeError("Cannot use %r in a symbolic expression." % (value,))

class Expression(object):
	"""
	Base of all expression nodes. Provides the arithmetic operators, which build new trees and never modify existing ones.
	"""

	__slots__ = ()

	def __add__(self,other):
		return Operation("+",(self,_as_expression(other)))

	def __radd__(self,other):
		return Operation("+",(_as_expression(other),self))

	def __sub__(self,other):
		return Operation("-",(self,_as_expression(other)))

	def __rsub__(self,other):
		return Operation("-",(_as_expression(other),self))

	def __mul__(self,other):
		return Operation("*",(self,_as_expression(other)))

	def __rmul__(self,other):
		return Operation("*",(_as_expression(other),self))

	def __truediv__(self,other):
		return Operation("/",(self,_as_expression(other)))

	def __rtruediv__(self,other):
		return Operation("/",(_as_expression(other),self))

	def __pow__(self,other):
		return Operation("^",(self,_as_expression(other)))

	def __rpow__(self,other):
		return Operation("^",(_as_expression(other),self))

	def __neg__(self):
		return Operation("*",(Constant(-1),self))

	def __pos__(self):
		return self

	def __repr__(self):
		return to_source(self)

	def subs(self,target,replacement):
		return substitute(self,target,replacement)

class Constant(Expression):
	"""
	A numeric literal.
	"""

	__slots__ = ("value",)

	def __init__(self,value):
		if isinstance(value,Constant):
			value = value.value
		self.value = value

	def __eq__(self,other):
		return isinstance(other,Constant) and self.value==other.value

	def __hash__(self):
		return hash(("Constant",self.value))

class Variable(Expression):
	"""
	A named symbol.

	Parameters
	----------
	name : string
		Must be a valid Python identifier, as it becomes the name of a local variable in generated code.

	subtype : string
		One of `"IndependentVariable"`, `"DependentVariable"`, `"Unknown"` and `"Parameter"`.

	dependents : iterable of variables
		The independent variables this variable is a function of. A variable is dependent if and only if this is non-empty.

	diff : `Differential` or `None`
		Set if this occurrence of the variable is differentiated. Use `Differential(t)*x` instead of setting this directly.

	value : number or `None`
		A default value. This is not part of the variable’s identity. Generated functions ignore it; `ODEFunction.solve` uses the default values of parameters if no parameters are passed.
	"""

	__slots__ = ("name","subtype","dependents","diff","value")

	def __init__(self, name, subtype="Unknown", dependents=(), diff=None, value=None):
		if not isinstance(name,str) or not name.isidentifier() or iskeyword(name):
			raise ValueError("Variable names must be valid identifiers, but got %r." % (name,))
		if subtype not in SUBTYPES:
			raise ValueError("Unknown variable subtype: %s" % subtype)
		self.name = name
		self.subtype = subtype
		self.dependents = tuple(dependents)
		self.diff = diff
		self.value = value

	def _key(self):
		return (self.name, self.subtype, self.dependents, self.diff)

	def __eq__(self,other):
		return isinstance(other,Variable) and self._key()==other._key()

	def __hash__(self):
		return hash(self._key())

	@property
	def base(self):
		"""
		the same variable without a differential
		"""
		if self.diff is None:
			return self
		else:
			return Variable(self.name, self.subtype, self.dependents, None, self.value)

	def differentiated(self,differential):
		if self.diff is None:
			new_diff = differential
		elif self.diff.x == differential.x:
			new_diff = Differential(differential.x, self.diff.order+differential.order)
		else:
			raise NotImplementedError("Mixed derivatives of variables are not supported.")
		return Variable(self.name, self.subtype, self.dependents, new_diff, self.value)

class Operation(Expression):
	"""
	Application of an operation from `ARITY` to a tuple of argument expressions.
	"""

	__slots__ = ("op","args")

	def __init__(self,op,args):
		if op not in ARITY:
			raise NotImplementedError("Unsupported operation: %s" % op)
		args = tuple(_as_expression(arg) for arg in args)
		arity = ARITY[op]
		if (arity is None and not args) or (arity is not None and len(args)!=arity):
			raise ValueError("Operation %s cannot take %i arguments." % (op,len(args)))
		self.op = op
		self.args = args

	def __eq__(self,other):
		return isinstance(other,Operation) and self.op==other.op and self.args==other.args

	def __hash__(self):
		return hash((self.op,self.args))

class Derivative(Expression):
	"""
	An unresolved derivative of `expression` with respect to `variable`. Use `expand_derivatives` to resolve it.
	"""

	__slots__ = ("expression","variable")

	def __init__(self,expression,variable):
		self.expression = _as_expression(expression)
		self.variable = variable

	def __eq__(self,other):
		return (
				isinstance(other,Derivative)
				and self.expression==other.expression
				and self.variable==other.variable
			)

	def __hash__(self):
		return hash(("Derivative",self.expression,self.variable))

class Differential(object):
	"""
	The differential operator with respect to `x` of the given order. `D*v` for a variable `v` returns `v` marked as differentiated; `D(expression)` for any other expression returns an unresolved `Derivative`.
	"""

	__slots__ = ("x","order")

	def __init__(self,x,order=1):
		if not isinstance(x,Variable):
			raise TypeError("Can only differentiate with respect to a variable.")
		if order<1:
			raise ValueError("The order of a differential must be positive.")
		self.x = x
		self.order = order

	def __call__(self,expression):
		expression = _as_expression(expression)
		if isinstance(expression,Variable):
			return expression.differentiated(self)
		for _ in range(self.order):
			expression = Derivative(expression,self.x)
		return expression

	def __mul__(self,other):
		if isinstance(other,(Expression,Number)):
			return self(other)
		return NotImplemented

	def __eq__(self,other):
		return isinstance(other,Differential) and (self.x,self.order)==(other.x,other.order)

	def __hash__(self):
		return hash(("Differential",self.x,self.order))

	def __repr__(self):
		return "Differential(%s, %i)" % (self.x.name,self.order)

class Equation(object):
	"""
	An equation `lhs ~ rhs`. For differential-equation systems, `lhs` is a variable, which is differentiated for a differential equation and plain for an intermediate equation.
	"""

	__slots__ = ("lhs","rhs")

	def __init__(self,lhs,rhs):
		self.lhs = _as_expression(lhs)
		self.rhs = _as_expression(rhs)

	def __eq__(self,other):
		return isinstance(other,Equation) and (self.lhs,self.rhs)==(other.lhs,other.rhs)

	def __hash__(self):
		return hash(("Equation",self.lhs,self.rhs))

	def __repr__(self):
		return "%s ~ %s" % (to_source(self.lhs),to_source(self.rhs))

def IndependentVariable(name, value=None):
	return Variable(name, "IndependentVariable", value=value)

def DependentVariable(name, dependents=(), value=None):
	return Variable(name, "DependentVariable", dependents, value=value)

def Unknown(name, dependents=(), value=None):
	return Variable(name, "Unknown", dependents, value=value)

def Parameter(name, value=None):
	return Variable(name, "Parameter", value=value)

def _function(name):
	def function(argument):
		return Operation(name,(argument,))
	function.__name__ = name
	function.__doc__ = "symbolic `%s`" % name
	return function

sin  = _function("sin")
cos  = _function("cos")
tan  = _function("tan")
exp  = _function("exp")
log  = _function("log")
sqrt = _function("sqrt")
sinh = _function("sinh")
cosh = _function("cosh")
tanh = _function("tanh")
Abs  = _function("abs")

# Traversal and substitution
# --------------------------

def variables(expression):
	"""
	Yields every variable occurring in `expression`, depth first and from left to right (with repetitions).
	"""
	if isinstance(expression,Variable):
		yield expression
	elif isinstance(expression,Operation):
		for arg in expression.args:
			yield from variables(arg)
	elif isinstance(expression,Derivative):
		yield from variables(expression.expression)
	elif not isinstance(expression,Constant):
		raise TypeError("Not an expression: %r" % (expression,))

def equation_variables(equation):
	return chain(variables(equation.lhs),variables(equation.rhs))

def substitute(expression, target, replacement):
	"""
	Returns a new tree with every occurrence of `target` in `expression` replaced by `replacement`.
	"""
	if expression==target:
		return replacement
	elif isinstance(expression,Operation):
		return Operation(
				expression.op,
				[ substitute(arg,target,replacement) for arg in expression.args ]
			)
	elif isinstance(expression,Derivative):
		return Derivative(
				substitute(expression.expression,target,replacement),
				expression.variable
			)
	else:
		return expression

def find_replace(expressions, target, replacement):
	"""
	Replaces every occurrence of `target` with `replacement` in each of `expressions` (a mutable sequence), in place. The trees themselves are not modified; each entry is replaced by a new tree.
	"""
	target = _as_expression(target)
	replacement = _as_expression(replacement)
	for i,expression in enumerate(expressions):
		expressions[i] = substitute(expression,target,replacement)

# Printing
# --------

def derivative_name(variable):
	"""
	The name under which the derivative given by a differentiated variable is bound in generated code, e.g., `x_t` for the first derivative of `x` with respect to `t`.
	"""
	return "%s_%s" % (variable.name, variable.diff.x.name*variable.diff.order)

def _format_number(value):
	if isinstance(value,Integral):
		text = repr(int(value))
	else:
		text = repr(float(value))
	return "(%s)" % text if text.startswith("-") else text

def to_source(expression):
	"""
	Converts `expression` to a Python expression as a string. Functions are referred to by their names in `FUNCTIONS`; generated code provides them.
	"""
	if isinstance(expression,Constant):
		return _format_number(expression.value)
	elif isinstance(expression,Variable):
		return expression.name if expression.diff is None else derivative_name(expression)
	elif isinstance(expression,Operation):
		if expression.op in FUNCTIONS:
			return "%s(%s)" % (expression.op,to_source(expression.args[0]))
		else:
			return "(%s)" % _INFIX[expression.op].join(map(to_source,expression.args))
	elif isinstance(expression,Derivative):
		raise ValueError("Cannot print the unresolved derivative of %s with respect to %s. Call expand_derivatives first." % (to_source(expression.expression),expression.variable.name))
	else:
		raise TypeError("Not an expression: %r" % (expression,))

# Differentiation
# ---------------

def diff(expression, variable):
	"""
	Returns the unresolved derivative of `expression` with respect to `variable`.
	"""
	return Derivative(expression,variable)

def expand_derivatives(expression):
	"""
	Resolves all `Derivative` nodes in `expression` using the sum, product, quotient and chain rules. The result is not simplified.
	"""
	if isinstance(expression,Derivative):
		return _derivative(expand_derivatives(expression.expression),expression.variable)
	elif isinstance(expression,Operation):
		return Operation(expression.op,[expand_derivatives(arg) for arg in expression.args])
	else:
		return expression

def _outer_derivative(op,arg):
	if op=="sin":
		return cos(arg)
	elif op=="cos":
		return -sin(arg)
	elif op=="tan":
		return 1/cos(arg)**2
	elif op=="exp":
		return exp(arg)
	elif op=="log":
		return 1/arg
	elif op=="sqrt":
		return 1/(2*sqrt(arg))
	elif op=="sinh":
		return cosh(arg)
	elif op=="cosh":
		return sinh(arg)
	elif op=="tanh":
		return 1-tanh(arg)**2
	elif op=="abs":
		return arg/Abs(arg)
	else:
		raise NotImplementedError("No derivative known for %s." % op)

def _derivative(expression, variable):
	# expression must not contain Derivative nodes
	if isinstance(expression,Constant):
		return Constant(0)

	elif isinstance(expression,Variable):
		if expression==variable:
			return Constant(1)
		elif expression.diff is None and variable in expression.dependents:
			return Differential(variable)*expression
		else:
			return Constant(0)

	elif isinstance(expression,Operation):
		op,args = expression.op,expression.args

		if op in FUNCTIONS:
			return Operation("*",( _outer_derivative(op,args[0]), _derivative(args[0],variable) ))

		d = [ _derivative(arg,variable) for arg in args ]
		if op in ("+","-"):
			return Operation(op,d)
		elif op=="*":
			terms = [
					Operation("*", args[:k]+(d[k],)+args[k+1:])
					for k in range(len(args))
				]
			return terms[0] if len(terms)==1 else Operation("+",terms)
		elif op=="/":
			f,g = args
			return (d[0]*g - f*d[1]) / g**2
		elif op=="^":
			base,exponent = args
			if isinstance(exponent,Constant):
				return Operation("*",( exponent, base**Constant(exponent.value-1), d[0] ))
			else:
				return expression * ( d[1]*log(base) + exponent*d[0]/base )

	elif isinstance(expression,Derivative):
		return _derivative(expand_derivatives(expression),variable)

	raise TypeError("Not an expression: %r" % (expression,))

# Simplification
# --------------

def _is_literal(expression, value=None):
	return isinstance(expression,Constant) and (value is None or expression.value==value)

def _fold_power(base, exponent):
	if (base==0 and exponent<0) or (base<0 and not float(exponent).is_integer()):
		return None
	try:
		return Constant(base**exponent)
	except OverflowError:
		return None

def _fold(op, args):
	if op in ("+","*"):
		flat = []
		for arg in args:
			if isinstance(arg,Operation) and arg.op==op:
				flat.extend(arg.args)
			else:
				flat.append(arg)

		literals = [ arg.value for arg in flat if isinstance(arg,Constant) ]
		others = [ arg for arg in flat if not isinstance(arg,Constant) ]

		if op=="+":
			total = sum(literals)
			if total!=0 or not others:
				others.insert(0,Constant(total))
		else:
			product = 1
			for literal in literals:
				product *= literal
			if product==0:
				return Constant(product)
			if product!=1 or not others:
				others.insert(0,Constant(product))

		return others[0] if len(others)==1 else Operation(op,others)

	if all(map(_is_literal,args)):
		values = [arg.value for arg in args]
		if op=="-":
			return Constant(values[0]-values[1])
		elif op=="/" and values[1]!=0:
			return Constant(values[0]/values[1])
		elif op=="^":
			folded = _fold_power(*values)
			if folded is not None:
				return folded

	if op=="-":
		if _is_literal(args[1],0):
			return args[0]
		elif _is_literal(args[0],0):
			return _fold("*",[Constant(-1),args[1]])
	elif op=="/":
		if _is_literal(args[1],1):
			return args[0]
		elif _is_literal(args[0],0) and not _is_literal(args[1]):
			return Constant(0)
	elif op=="^":
		if _is_literal(args[1],1):
			return args[0]
		elif _is_literal(args[1],0):
			return Constant(1)

	return Operation(op,args)

def simplify_constants(expression):
	"""
	Collapses literal subexpressions of `expression` (e.g., sums and products of numbers), flattens nested sums and products and removes neutral elements. Division by a literal zero is never folded.
	"""
	if isinstance(expression,Operation):
		return _fold(expression.op,[simplify_constants(arg) for arg in expression.args])
	elif isinstance(expression,Derivative):
		return Derivative(simplify_constants(expression.expression),expression.variable)
	else:
		return expression

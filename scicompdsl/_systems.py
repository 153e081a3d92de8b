#!/usr/bin/python3
# -*- coding: utf-8 -*-

from itertools import chain

from jitcxde_common.check import CheckEnvironment, checker

from scicompdsl._expressions import (
		Constant, Variable, Parameter,
		equation_variables, substitute, find_replace, diff, expand_derivatives, simplify_constants, to_source,
	)
from scicompdsl._helpers import sort_intermediates
from scicompdsl._symbolic import symbolic_inverse
from scicompdsl._codegen import FunctionDescription

#: output representation writing into a mutable buffer: `f(du,u,p,t)`
ArrayFunction = "ArrayFunction"
#: output representation returning a new fixed-size vector: `f(u,p,t)`
SArrayFunction = "SArrayFunction"

class JacobianNotComputed(RuntimeError):
	"""
	This exception is raised when something needs the symbolic Jacobian of a system that has neither been computed with `generate_ode_jacobian` nor been provided on construction.
	"""
	pass

# Classification
# --------------

def is_derivative(variable):
	return variable.diff is not None

def is_dependent(variable):
	return bool(variable.dependents)

def is_parameter(ivs):
	def predicate(variable):
		return not is_derivative(variable) and not is_dependent(variable) and variable not in ivs
	return predicate

def is_unknown(variable):
	return variable.subtype in ("DependentVariable","Unknown") or is_dependent(variable)

def _anything(variable):
	return True

def _is_calculated(calcs):
	lhss = [ calc.lhs for calc in calcs ]
	return lambda variable: variable in lhss

def _occurrences(eqs):
	for equation in eqs:
		for variable in equation_variables(equation):
			yield variable
			if is_derivative(variable):
				yield variable.base

def extract_elements(eqs, predicates):
	"""
	Sorts the variables occurring in `eqs` into buckets, one per predicate. Each variable goes into the bucket of the first predicate it fulfils (or none). Buckets are free of duplicates and ordered by first occurrence. A differentiated variable is immediately followed by its undifferentiated base.

	Thus inferred dependent variables follow the order of the differential equations only where each equation’s left-hand side is the first occurrence of its variable. Otherwise (e.g., when an intermediate equation declared first mentions dependent variables), the order of `dvs` differs from that of the Jacobian’s rows; see `rows_in_dvs_order`.
	"""
	result = [ [] for _ in predicates ]
	extracted = set()
	for variable in _occurrences(eqs):
		if variable in extracted:
			continue
		extracted.add(variable)
		for bucket,predicate in zip(result,predicates):
			if predicate(variable):
				bucket.append(variable)
				break
	return result

def _unique(items):
	result = []
	for item in items:
		if item not in result:
			result.append(item)
	return result

def is_intermediate(equation):
	return getattr(equation.lhs,"diff",None) is None

def build_equals_expr(equation):
	"""
	Returns the name bound by `equation` in generated code and the expression it is bound to.
	"""
	assert isinstance(equation.lhs,Variable), "The left-hand side of %r is not a variable." % (equation,)
	return to_source(equation.lhs), equation.rhs

# Systems
# -------

class AbstractSystem(CheckEnvironment):
	"""
	Common base of systems. Consistency checks are methods decorated with `checker` and are all run by `check`: with `fail_fast`, the first failure raises a `ValueError`; otherwise all failures are printed before a `ValueError` is raised.
	"""

	verbose = False

	def report(self,message):
		if self.verbose:
			print(message)

class DiffEqSystem(AbstractSystem):
	"""
	A system of differential equations together with its independent variables, dependent variables and parameters.

	Parameters
	----------
	eqs : iterable of `Equation`
		The equations in the order of declaration. Each left-hand side is either a differentiated dependent variable (differential equation) or a plain variable (intermediate equation, which is substituted or evaluated before the differential equations).

	ivs : iterable of variables
		The independent variables. If not given, they are inferred as the dependents of the dependent variables.

	dvs : iterable of variables
		The dependent variables in the order in which they are stored in the state vector. Must be given together with `ps`, in which case nothing is inferred.

	ps : iterable of variables
		The parameters in the order in which they are stored in the parameter vector.

	jac : list of lists of expressions
		A precomputed symbolic Jacobian.

	verbose : boolean
		Whether progress shall be reported.
	"""

	def __init__(self, eqs, ivs=None, dvs=None, ps=None, jac=None, *, verbose=False):
		self.eqs = list(eqs)
		self.verbose = verbose
		self.jac = jac

		if (dvs is None) != (ps is None):
			raise TypeError("dvs and ps must be given together.")

		calculated = _is_calculated(filter(is_intermediate,self.eqs))
		if dvs is not None:
			if ivs is None:
				raise TypeError("ivs must be given if dvs and ps are.")
			self.ivs, self.dvs, self.ps = list(ivs), list(dvs), list(ps)
		elif ivs is None:
			_, _, self.dvs = extract_elements(self.eqs,[calculated,is_derivative,is_dependent])
			self.ivs = _unique(chain.from_iterable(dv.dependents for dv in self.dvs))
			_, self.ps = extract_elements(self.eqs,[calculated,is_parameter(self.ivs)])
		else:
			self.ivs = list(ivs)
			_, _, self.dvs, self.ps = extract_elements(
					self.eqs,
					[calculated,is_derivative,is_dependent,is_parameter(self.ivs)]
				)

	@property
	def intermediates(self):
		return [ eq for eq in self.eqs if is_intermediate(eq) ]

	@property
	def differentials(self):
		return [ eq for eq in self.eqs if not is_intermediate(eq) ]

	def differential_for(self,dv):
		"""
		Returns the left-hand side of the differential equation for the dependent variable `dv`.
		"""
		for equation in self.differentials:
			if equation.lhs.base==dv:
				return equation.lhs
		raise ValueError("There is no differential equation for the dependent variable %s." % dv.name)

	@checker
	def _check_non_empty(self):
		self._check_assert( self.eqs, "The system has no equations." )

	@checker
	def _check_lhs(self):
		for i,equation in enumerate(self.eqs):
			self._check_assert(
					isinstance(equation.lhs,Variable),
					"The left-hand side of equation %i is not a variable." % i
				)

	@checker
	def _check_independent_variables(self):
		self._check_assert(
				self.ivs,
				"There is no independent variable. Did you declare what your dependent variables depend on?"
			)

	@checker
	def _check_square(self):
		self._check_assert(
				len(self.differentials)==len(self.dvs),
				"There are %i differential equations but %i dependent variables." % (len(self.differentials),len(self.dvs))
			)

	@checker
	def _check_coverage(self):
		lhss = [ equation.lhs.base for equation in self.differentials if isinstance(equation.lhs,Variable) ]
		for dv in self.dvs:
			self._check_assert(
					lhss.count(dv)==1,
					"The dependent variable %s has %i differential equations instead of one." % (dv.name,lhss.count(dv))
				)

	@checker
	def _check_order(self):
		lhss = [ equation.lhs.base for equation in self.differentials if isinstance(equation.lhs,Variable) ]
		self._check_assert(
				lhss==self.dvs,
				"The differential equations are not in the order of the dependent variables; rows of the Jacobian will not match the entries of the derivative."
			)

	@checker
	def _check_intermediates(self):
		try:
			sort_intermediates(self.intermediates)
		except ValueError as error:
			self._check_assert(False,str(error))

class NonlinearSystem(AbstractSystem):
	"""
	A system of algebraic equations `lhs ~ rhs`, whose residuals `rhs-lhs` shall vanish.

	Parameters
	----------
	eqs : iterable of `Equation`

	vs : iterable of variables
		The unknowns in the order in which they are stored in the state vector. If not given, all dependent variables and unknowns occurring in the equations are used.

	ps : iterable of variables
		The parameters. If not given, all other variables occurring in the equations are used.
	"""

	def __init__(self, eqs, vs=None, ps=None, *, verbose=False):
		self.eqs = list(eqs)
		self.verbose = verbose
		if vs is None:
			self.vs, others = extract_elements(self.eqs,[is_unknown,_anything])
		else:
			self.vs = list(vs)
			_, others = extract_elements(self.eqs,[self.vs.__contains__,_anything])
		self.ps = others if ps is None else list(ps)

	@checker
	def _check_non_empty(self):
		self._check_assert( self.eqs, "The system has no equations." )

	@checker
	def _check_square(self):
		self._check_assert(
				len(self.eqs)==len(self.vs),
				"There are %i equations but %i unknowns." % (len(self.eqs),len(self.vs))
			)

# Symbolic processing
# -------------------

def substitute_intermediates(expressions, calcs):
	"""
	Substitutes the intermediate equations `calcs` into `expressions` (a mutable sequence, modified in place). Intermediates may depend on each other (but not cyclically).
	"""
	calcs = sort_intermediates(calcs)
	values = [ calc.rhs for calc in calcs ]
	for k,calc in enumerate(calcs):
		find_replace(expressions,calc.lhs,values[k])
		for m in range(k+1,len(values)):
			values[m] = substitute(values[m],calc.lhs,values[k])
	return expressions

def calculate_jacobian(sys, simplify=True):
	"""
	Returns the symbolic Jacobian of the system as a list of rows. Row `i` contains the derivatives of the right-hand side of the `i`-th differential equation (after substituting intermediates) with respect to each dependent variable.
	"""
	rhs = [ equation.rhs for equation in sys.differentials ]
	substitute_intermediates(rhs,sys.intermediates)

	if len(rhs)!=len(sys.dvs):
		raise ValueError("The Jacobian must be square, but there are %i differential equations and %i dependent variables." % (len(rhs),len(sys.dvs)))

	jac = [
			[ expand_derivatives(diff(expression,dv)) for dv in sys.dvs ]
			for expression in rhs
		]
	if simplify:
		jac = [ [simplify_constants(entry) for entry in row] for row in jac ]
	return jac

# Code generation
# ---------------

def _independent_variable(sys):
	if not sys.ivs:
		raise ValueError("The system has no independent variable. Did you declare what your dependent variables depend on?")
	if len(sys.ivs)>1:
		raise NotImplementedError("Systems with more than one independent variable (%s) are not supported." % ", ".join(iv.name for iv in sys.ivs))
	return sys.ivs[0]

def _preamble(sys, states="_u", parameters="_p", time="_t"):
	bindings = [ (dv.name,states,i) for i,dv in enumerate(sys.dvs) ]
	bindings.extend( (p.name,parameters,i) for i,p in enumerate(sys.ps) )
	if time is not None:
		bindings.extend( (iv.name,time,None) for iv in sys.ivs[:1] )
	return bindings

def _derivative_variables(sys):
	independent = _independent_variable(sys)
	if len(sys.differentials)!=len(sys.dvs):
		raise ValueError("There are %i differential equations but %i dependent variables." % (len(sys.differentials),len(sys.dvs)))
	result = []
	for dv in sys.dvs:
		lhs = sys.differential_for(dv)
		if lhs.diff.x!=independent:
			raise ValueError("%s is differentiated with respect to %s instead of %s." % (dv.name,lhs.diff.x.name,independent.name))
		if lhs.diff.order!=1:
			raise NotImplementedError("Only first-order equations are supported; %s is of order %i." % (dv.name,lhs.diff.order))
		result.append(lhs)
	return result

def _body(sys):
	return [
			build_equals_expr(equation)
			for equation in sort_intermediates(sys.intermediates)+sys.differentials
		]

def generate_ode_function(sys, version=ArrayFunction):
	"""
	Generates the right-hand side of the system.

	Parameters
	----------
	version : `ArrayFunction` or `SArrayFunction`
		With `ArrayFunction`, the result has the signature `f(du,u,p,t)` and writes the derivative into `du`. With `SArrayFunction`, it has the signature `f(u,p,t)` and returns the derivative as a new read-only vector.

	Returns
	-------
	`FunctionDescription`, which is callable with the above signature.
	"""
	derivatives = _derivative_variables(sys)
	body = _body(sys)

	if version==ArrayFunction:
		description = FunctionDescription(
				"ode_function",
				("_du","_u","_p","_t"),
				bindings = _preamble(sys),
				body = body,
				outputs = [ ("_du",(i,),lhs) for i,lhs in enumerate(derivatives) ],
			)
	elif version==SArrayFunction:
		description = FunctionDescription(
				"ode_function",
				("_u","_p","_t"),
				bindings = _preamble(sys),
				body = body,
				returns = derivatives,
				returns_like = "_u",
			)
	else:
		raise ValueError("Unknown version: %s" % version)

	sys.report("generated ODE function")
	return description

def _matrix_description(sys, name, arguments, matrix):
	return FunctionDescription(
			name,
			arguments,
			bindings = _preamble(sys),
			outputs = [
					(arguments[0],(i,j),entry)
					for i,row in enumerate(matrix)
					for j,entry in enumerate(row)
				],
		)

def rows_in_dvs_order(sys, matrix):
	"""
	Permutes the rows of `matrix`, which follow the declaration order of the differential equations (like `sys.jac`), such that row `i` belongs to the differential equation of `sys.dvs[i]`, i.e., to the `i`-th entry of the derivative.
	"""
	lhss = [ equation.lhs for equation in sys.differentials ]
	return [ matrix[lhss.index(sys.differential_for(dv))] for dv in sys.dvs ]

def generate_ode_jacobian(sys, simplify=True, rows_by_dvs=False):
	"""
	Computes the symbolic Jacobian, stores it as `sys.jac`, and generates a function `f(J,u,p,t)` writing it into the two-dimensional array `J`.

	Parameters
	----------
	simplify : boolean
		Whether to apply `simplify_constants` to each entry.

	rows_by_dvs : boolean
		Whether the rows of `J` shall follow the order of `sys.dvs` (like the entries of the derivative) instead of the declaration order of the differential equations. `sys.jac` always keeps the latter.
	"""
	sys.jac = calculate_jacobian(sys,simplify)
	sys.report("generated symbolic Jacobian")
	matrix = rows_in_dvs_order(sys,sys.jac) if rows_by_dvs else sys.jac
	return _matrix_description(sys,"ode_jacobian",("_J","_u","_p","_t"),matrix)

def generate_ode_iW(sys, simplify=True):
	"""
	Generates two functions `f(iW,u,p,gam,t)` writing `inv(I-gam*J)` and `inv(I/gam-J)` into `iW`, respectively, where `J` is the Jacobian stored in `sys.jac`. Both inverses are computed symbolically and independently of each other.

	Parameters
	----------
	simplify : boolean
		Whether to apply `simplify_constants` to each entry of the inverses.
	"""
	if sys.jac is None:
		raise JacobianNotComputed("The Jacobian has not been computed yet. Call generate_ode_jacobian first.")

	for variable in chain(sys.ivs,sys.dvs,sys.ps):
		if variable.name=="gam":
			raise ValueError("The name gam is reserved for the step-size factor of the W matrix.")
	gam = Parameter("gam")

	n = len(sys.jac)
	def identity(i,j):
		return Constant(1 if i==j else 0)

	iW = symbolic_inverse([
			[ identity(i,j) - gam*sys.jac[i][j] for j in range(n) ]
			for i in range(n)
		])
	iW_t = symbolic_inverse([
			[ identity(i,j)/gam - sys.jac[i][j] for j in range(n) ]
			for i in range(n)
		])

	if simplify:
		iW = [ [simplify_constants(entry) for entry in row] for row in iW ]
		iW_t = [ [simplify_constants(entry) for entry in row] for row in iW_t ]
	sys.report("generated symbolic inverses of W")

	arguments = ("_iW","_u","_p","gam","_t")
	return (
			_matrix_description(sys,"ode_iW",arguments,iW),
			_matrix_description(sys,"ode_iW_t",arguments,iW_t),
		)

def generate_nlsys_function(sys):
	"""
	Generates a function `f(out,u,p)` writing the residual `rhs-lhs` of each equation of a `NonlinearSystem` into `out`.
	"""
	description = FunctionDescription(
			"nlsys_function",
			("_out","_u","_p"),
			bindings = (
					[ (v.name,"_u",i) for i,v in enumerate(sys.vs) ] +
					[ (p.name,"_p",i) for i,p in enumerate(sys.ps) ]
				),
			outputs = [
					("_out",(i,),simplify_constants(equation.rhs-equation.lhs))
					for i,equation in enumerate(sys.eqs)
				],
		)
	sys.report("generated nonlinear-system function")
	return description

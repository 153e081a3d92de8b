from inspect import signature

import numpy as np
from scipy.integrate import solve_ivp
from scipy.integrate._ode import find_integrator
from scipy.integrate._ivp.ivp import METHODS as ivp_methods

from scicompdsl._systems import ArrayFunction, SArrayFunction, generate_ode_function, generate_ode_jacobian

class UnsuccessfulIntegration(Exception):
	"""
		This exception is raised when the integrator cannot meet the accuracy and step-size requirements.
	"""
	pass

def integrator_info(name):
	"""
	Finds out the integrator from a given name, what backend it uses, and whether it can use a Jacobian.
	"""
	if name == 'zvode':
		raise NotImplementedError("Complex numbers are not supported.")

	if name in ivp_methods.keys():
		integrator = ivp_methods[name]
		return {
				"backend": "ivp",
				"wants_jac": "jac" in signature(integrator).parameters,
				"integrator": integrator
			}
	else:
		integrator = find_integrator(name)
		if integrator is None:
			raise RuntimeError("There is no integrator with that name.")
		return {
				"backend": "ode",
				"wants_jac": "with_jacobian" in signature(integrator).parameters,
				"integrator": integrator
			}

class ODEFunction(object):
	"""
	Wraps the generated right-hand side (and optionally Jacobian) of a `DiffEqSystem` for use with SciPy’s integrators.

	Parameters
	----------
	sys : `DiffEqSystem`

	version : `ArrayFunction` or `SArrayFunction`
		Which representation of the derivative to generate. This determines `iip`.

	jac : boolean
		Whether to also generate the Jacobian.

	simplify : boolean
		Whether to simplify the Jacobian.

	Attributes
	----------
	iip : boolean
		Whether `f` writes its result in place (`f(du,u,p,t)`) as opposed to returning it (`f(u,p,t)`).
	"""

	def __init__(self, sys, version=ArrayFunction, jac=False, simplify=True):
		if version not in (ArrayFunction,SArrayFunction):
			raise ValueError("Unknown version: %s" % version)
		self.version = version
		self.iip = version==ArrayFunction
		self.n = len(sys.dvs)
		self.ps = list(sys.ps)
		self.f = generate_ode_function(sys,version)
		# rows must match the entries of f
		self.jac = generate_ode_jacobian(sys,simplify,rows_by_dvs=True) if jac else None

	def __call__(self,*args):
		return self.f(*args)

	def rhs(self,p):
		"""
		Returns the derivative as a function `fun(t,y)` for the parameters `p`, as expected by `solve_ivp` or `ode`.
		"""
		if self.iip:
			def fun(t,y):
				du = np.empty(self.n, dtype=np.result_type(y,float))
				self.f(du,y,p,t)
				return du
		else:
			def fun(t,y):
				return np.array(self.f(y,p,t))
		return fun

	def jacobian(self,p):
		"""
		Returns the Jacobian as a function `jac(t,y)` for the parameters `p`.
		"""
		if self.jac is None:
			raise RuntimeError("No Jacobian was generated. Use jac=True.")

		def jac(t,y):
			J = np.empty((self.n,self.n), dtype=np.result_type(y,float))
			self.jac(J,y,p,t)
			return J
		return jac

	def default_parameters(self):
		"""
		Returns the default values of the parameters (see the `value` argument of `Parameter`) in the order of the parameter vector.
		"""
		missing = [ p.name for p in self.ps if p.value is None ]
		if missing:
			raise ValueError("No default value for the parameters %s." % ", ".join(missing))
		return [ p.value for p in self.ps ]

	def solve(self, u0, t_span, p=None, method="RK45", **kwargs):
		"""
		Integrates the system with `scipy.integrate.solve_ivp`, passing the Jacobian if the method can use it and it was generated. If `p` is not given, the parameters’ default values are used. Further keyword arguments are passed on to `solve_ivp`.
		"""
		if p is None:
			p = self.default_parameters()
		info = integrator_info(method)
		if info["backend"] != "ivp":
			raise NotImplementedError("Use rhs() and jacobian() with scipy.integrate.ode for %s." % method)
		if info["wants_jac"] and self.jac is not None:
			kwargs.setdefault("jac",self.jacobian(p))

		solution = solve_ivp(self.rhs(p), t_span, np.asarray(u0,dtype=float), method=method, **kwargs)
		if not solution.success:
			raise UnsuccessfulIntegration(solution.message)
		return solution

from ._expressions import (
		Expression, Constant, Variable, Operation, Derivative, Differential, Equation,
		IndependentVariable, DependentVariable, Unknown, Parameter,
		sin, cos, tan, exp, log, sqrt, sinh, cosh, tanh, Abs,
		variables, substitute, find_replace, diff, expand_derivatives, simplify_constants, to_source,
	)
from ._systems import (
		DiffEqSystem, NonlinearSystem, JacobianNotComputed,
		ArrayFunction, SArrayFunction,
		extract_elements, calculate_jacobian, rows_in_dvs_order,
		generate_ode_function, generate_ode_jacobian, generate_ode_iW, generate_nlsys_function,
	)
from ._codegen import FunctionDescription
from .integrator_tools import ODEFunction, UnsuccessfulIntegration
from .version import version as __version__

#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Suppose, we want to implement the Lotka–Volterra model, which is described by the following equations:

.. math::

	\\begin{alignat*}{3}
	\\dot{B} &=&    γ · B &- φ · R · B\\\\
	\\dot{R} &=&\\, -ω · R &+ ν · R · B
	\\end{alignat*}

with :math:`γ = 0.6`, :math:`φ = 1.0`, :math:`ω = 0.5`, and :math:`ν = 0.5`.

We start with a few imports:

.. literalinclude:: ../examples/lotka_volterra.py
	:start-after: example-st\u0061rt
	:lines: 1-2
	:dedent: 1

… and declaring the time, the dynamical variables (which depend on time), and the control parameters as symbols:

.. literalinclude:: ../examples/lotka_volterra.py
	:start-after: example-st\u0061rt
	:lines: 4-7
	:dedent: 1

The predation term :math:`R · B` appears in both equations. We declare it once as an intermediate equation, i.e., one whose left-hand side is a plain variable. Intermediates may be declared anywhere in the list; they are substituted into the differential equations:

.. literalinclude:: ../examples/lotka_volterra.py
	:start-after: example-st\u0061rt
	:lines: 9-14
	:dedent: 1

Since we give the order of the dynamical variables and parameters explicitly, this is the order of the state vector and the parameter vector:

.. literalinclude:: ../examples/lotka_volterra.py
	:start-after: example-st\u0061rt
	:lines: 16-17
	:dedent: 1

We then generate the derivative and the Jacobian and integrate with the Radau method, which makes use of the latter. The initial :math:`B` shall be 0.5, the initial :math:`R` shall be 0.2:

.. literalinclude:: ../examples/lotka_volterra.py
	:start-after: example-st\u0061rt
	:lines: 19-27
	:dedent: 1

Finally, we save the time series:

.. literalinclude:: ../examples/lotka_volterra.py
	:start-after: example-st\u0061rt
	:lines: 29
	:dedent: 1

Taking everything together, our code is:

.. literalinclude:: ../examples/lotka_volterra.py
	:start-after: example-st\u0061rt
	:dedent: 1
	:linenos:
"""

if __name__ == "__main__":
	# example-start
	from scicompdsl import IndependentVariable, DependentVariable, Unknown, Parameter, Differential, Equation, DiffEqSystem, ODEFunction
	import numpy as np

	t = IndependentVariable("t")
	R, B = DependentVariable("R",[t]), DependentVariable("B",[t])
	γ, φ, ω, ν = (Parameter(name) for name in "γφων")
	D = Differential(t)

	predation = Unknown("predation")
	lotka_volterra = [
			Equation( D*B, γ*B - φ*predation ),
			Equation( D*R, -ω*R + ν*predation ),
			Equation( predation, R*B ),
		]

	sys = DiffEqSystem(lotka_volterra,[t],[B,R],[γ,φ,ω,ν])
	sys.check()

	ODE = ODEFunction(sys,jac=True)
	times = np.arange(0.0,100,0.1)
	solution = ODE.solve(
			[0.5,0.2], (times[0],times[-1]),
			p = [0.6,1.0,0.5,0.5],
			method = "Radau",
			t_eval = times,
			rtol = 1e-8,
		)

	np.savetxt("timeseries.dat",np.vstack((times,solution.y)).T)

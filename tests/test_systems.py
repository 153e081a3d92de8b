#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Tests the classification of variables when building systems and the consistency checks.
"""

import unittest
from io import StringIO
from contextlib import redirect_stdout

from scicompdsl import (
		DiffEqSystem, NonlinearSystem, Equation, Differential, Constant,
		IndependentVariable, DependentVariable, Unknown,
		extract_elements,
	)
from scicompdsl._systems import is_derivative, is_dependent, is_parameter, is_intermediate

from scenarios import (
		t, x, y, z, D, σ, ρ, β,
		lorenz, with_intermediates, chained_forward,
		coupling, drift, growth,
	)

class TestExtraction(unittest.TestCase):
	def test_buckets(self):
		derivatives, dependents, parameters = extract_elements(
				lorenz,
				[is_derivative, is_dependent, is_parameter([t])]
			)
		self.assertEqual( derivatives, [D*x, D*y, D*z] )
		self.assertEqual( dependents, [x, y, z] )
		self.assertEqual( parameters, [σ, ρ, β] )

	def test_first_matching_predicate(self):
		everything = lambda variable: True
		first, second = extract_elements(lorenz,[is_dependent,everything])
		self.assertEqual( first, [x, y, z] )
		self.assertNotIn( x, second )

	def test_first_occurrence_order(self):
		eqs = [
				Equation( D*y, β*x ),
				Equation( D*x, ρ*y + σ ),
			]
		_, dvs, ps = extract_elements(eqs,[is_derivative,is_dependent,is_parameter([t])])
		self.assertEqual( dvs, [y, x] )
		self.assertEqual( ps, [β, ρ, σ] )

	def test_intermediate(self):
		self.assertTrue( is_intermediate(Equation(coupling,x-y)) )
		self.assertFalse( is_intermediate(Equation(D*x,x-y)) )

class TestConstruction(unittest.TestCase):
	def test_equations_only(self):
		sys = DiffEqSystem(lorenz)
		self.assertEqual( sys.ivs, [t] )
		self.assertEqual( sys.dvs, [x, y, z] )
		self.assertEqual( sys.ps, [σ, ρ, β] )
		self.assertIsNone( sys.jac )
		self.assertEqual( sys.eqs, lorenz )

	def test_equations_and_ivs(self):
		sys = DiffEqSystem(lorenz,[t])
		self.assertEqual( sys.ivs, [t] )
		self.assertEqual( sys.dvs, [x, y, z] )
		self.assertEqual( sys.ps, [σ, ρ, β] )

	def test_full(self):
		sys = DiffEqSystem(lorenz,[t],[z,y,x],[β])
		self.assertEqual( sys.dvs, [z, y, x] )
		self.assertEqual( sys.ps, [β] )
		self.assertIsNone( sys.jac )

	def test_full_requires_all(self):
		with self.assertRaises(TypeError):
			DiffEqSystem(lorenz,[t],[x,y,z])
		with self.assertRaises(TypeError):
			DiffEqSystem(lorenz,None,[x,y,z],[σ,ρ,β])

	def test_ivs_are_union_of_dependents(self):
		s = IndependentVariable("s")
		u = DependentVariable("u",[t,s])
		v = DependentVariable("v",[s])
		eqs = [
				Equation( D*x, u*v ),
				Equation( Differential(s)*v, x ),
			]
		sys = DiffEqSystem(eqs)
		self.assertEqual( sys.dvs, [x, u, v] )
		self.assertEqual( sys.ivs, [t, s] )

	def test_time_as_parameter_unless_independent(self):
		eqs = [ Equation( D*x, σ*t ) ]
		self.assertEqual( DiffEqSystem(eqs).ps, [σ] )
		self.assertEqual( DiffEqSystem(eqs,[]).ps, [σ, t] )

	def test_intermediates_are_neither_states_nor_parameters(self):
		sys = DiffEqSystem(with_intermediates)
		self.assertEqual( sys.dvs, [x, y, z] )
		self.assertEqual( sys.ps, [σ, ρ, β] )
		for intermediate in [coupling, drift, growth]:
			self.assertNotIn( intermediate, sys.ps )
		self.assertEqual( len(sys.intermediates), 3 )
		self.assertEqual( len(sys.differentials), 3 )

	def test_missing_dependents(self):
		a = DependentVariable("a")
		sys = DiffEqSystem([ Equation(D*a, -a) ])
		self.assertEqual( sys.ivs, [] )
		self.assertEqual( sys.dvs, [] )

	def test_differential_for(self):
		sys = DiffEqSystem(lorenz)
		self.assertEqual( sys.differential_for(y), D*y )
		with self.assertRaises(ValueError):
			sys.differential_for(Unknown("w",[t]))

class TestCheck(unittest.TestCase):
	def test_lorenz(self):
		DiffEqSystem(lorenz).check()
		DiffEqSystem(with_intermediates).check()
		DiffEqSystem(chained_forward,[t],[x,y,z],[σ,ρ,β]).check()

	def test_empty(self):
		with self.assertRaises(ValueError):
			DiffEqSystem([]).check()

	def test_missing_dependents(self):
		a = DependentVariable("a")
		with self.assertRaises(ValueError):
			DiffEqSystem([ Equation(D*a, -a) ]).check()

	def test_not_square(self):
		sys = DiffEqSystem(lorenz[:2],[t],[x,y,z],[σ,ρ,β])
		with self.assertRaises(ValueError):
			sys.check()

	def test_order(self):
		sys = DiffEqSystem(lorenz,[t],[y,x,z],[σ,ρ,β])
		with self.assertRaises(ValueError):
			sys.check()

	def test_order_of_inferred_dvs(self):
		# intermediates declared first determine the order of dvs
		sys = DiffEqSystem(chained_forward)
		self.assertEqual( sys.dvs, [y, x, z] )
		output = StringIO()
		with redirect_stdout(output), self.assertRaises(ValueError):
			sys.check(fail_fast=False)
		self.assertEqual( len(output.getvalue().splitlines()), 1 )
		self.assertIn( "not in the order", output.getvalue() )

	def test_cyclic_intermediates(self):
		a, b = Unknown("a"), Unknown("b")
		eqs = [
				Equation( a, b+x ),
				Equation( b, a*y ),
				Equation( D*x, a ),
				Equation( D*y, b ),
			]
		with self.assertRaises(ValueError):
			DiffEqSystem(eqs).check()

	def test_all_failures_reported(self):
		sys = DiffEqSystem([ Equation(D*x,σ), Equation(Constant(0),x) ])
		output = StringIO()
		with redirect_stdout(output), self.assertRaises(ValueError):
			sys.check(fail_fast=False)
		self.assertIn( "not a variable", output.getvalue() )

	def test_fail_fast(self):
		sys = DiffEqSystem([ Equation(D*x,σ), Equation(Constant(0),x) ])
		output = StringIO()
		with redirect_stdout(output), self.assertRaises(ValueError):
			sys.check()
		self.assertEqual( output.getvalue(), "" )

class TestNonlinearSystem(unittest.TestCase):
	def test_inference(self):
		a, b, c = DependentVariable("a"), DependentVariable("b"), DependentVariable("c")
		eqs = [
				Equation( 0, σ*(b-a)   ),
				Equation( 0, a*(ρ-c)-b ),
				Equation( 0, a*b-β*c   ),
			]
		sys = NonlinearSystem(eqs)
		self.assertEqual( sys.vs, [b, a, c] )
		self.assertEqual( sys.ps, [σ, ρ, β] )
		sys.check()

	def test_explicit(self):
		a, b = Unknown("a"), Unknown("b")
		sys = NonlinearSystem( [Equation(0,a-σ*b), Equation(a,b*b)], [a,b] )
		self.assertEqual( sys.vs, [a, b] )
		self.assertEqual( sys.ps, [σ] )

	def test_not_square(self):
		a, b = Unknown("a"), Unknown("b")
		sys = NonlinearSystem( [Equation(0,a-σ*b)] )
		with self.assertRaises(ValueError):
			sys.check()

if __name__ == "__main__":
	unittest.main(buffer=True)

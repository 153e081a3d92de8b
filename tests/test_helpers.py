#!/usr/bin/python
# -*- coding: utf-8 -*-

import unittest

from scicompdsl import Equation, Unknown
from scicompdsl._helpers import sort_intermediates, render_template

from scenarios import x, y, σ

a, b, c = Unknown("a"), Unknown("b"), Unknown("c")

class SortTest(unittest.TestCase):
	def test_independent(self):
		calcs = [ Equation(b,x), Equation(a,y), Equation(c,σ) ]
		self.assertEqual( sort_intermediates(calcs), calcs )

	def test_valid_order_kept(self):
		calcs = [ Equation(a,x), Equation(b,a*y), Equation(c,a+b) ]
		self.assertEqual( sort_intermediates(calcs), calcs )

	def test_reorder(self):
		first, second, third = Equation(a,x), Equation(b,a*y), Equation(c,a+b)
		self.assertEqual(
				sort_intermediates([third,second,first]),
				[first,second,third]
			)

	def test_input_untouched(self):
		calcs = [ Equation(b,a), Equation(a,x) ]
		sort_intermediates(calcs)
		self.assertEqual( calcs[0], Equation(b,a) )

	def test_cycle(self):
		with self.assertRaises(ValueError):
			sort_intermediates([ Equation(a,b), Equation(b,c*x), Equation(c,a) ])

	def test_self_reference(self):
		with self.assertRaises(ValueError):
			sort_intermediates([ Equation(a,a+x) ])

	def test_empty(self):
		self.assertEqual( sort_intermediates([]), [] )

class TemplateTest(unittest.TestCase):
	def test_render(self):
		source = render_template(
				"generated_function.jinja",
				name = "f",
				arguments = ("_u","_p"),
				lines = [("x","_u[0]"),("y","(2*x)")],
				returns = "y",
			)
		self.assertEqual( source, "def f(_u, _p):\n\tx = _u[0]\n\ty = (2*x)\n\treturn y\n" )

	def test_empty_body(self):
		source = render_template(
				"generated_function.jinja",
				name = "g",
				arguments = (),
				lines = [],
				returns = None,
			)
		self.assertEqual( source, "def g():\n\tpass\n" )

if __name__ == "__main__":
	unittest.main(buffer=True)

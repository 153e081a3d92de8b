from os import path

from jinja2 import Environment, FileSystemLoader
from jitcxde_common.helpers import sort_helpers
from symengine import Dummy

from scicompdsl._expressions import Variable
from scicompdsl._symbolic import to_symengine

# Intermediate equations
# ----------------------

def sort_intermediates(calcs):
	"""
	Orders intermediate equations such that each one only depends on intermediates preceding it. Where the given order already fulfils this, it is kept.
	"""
	symbols = {}
	helpers = [
			(
				to_symengine(calc.lhs,symbols) if isinstance(calc.lhs,Variable) else Dummy(),
				to_symengine(calc.rhs,symbols),
				calc,
			)
			for calc in calcs
		]
	for lhs,rhs,_ in helpers:
		if rhs.has(lhs):
			raise ValueError("Intermediate equations cannot depend on each other in a cyclic way.")
	return [ helper[2] for helper in sort_helpers(helpers) ]

# Templates
# ---------

def render_template(filename, **kwargs):
	folder = path.dirname(__file__)
	env = Environment(
			loader = FileSystemLoader(folder),
			trim_blocks = True,
			lstrip_blocks = True,
			keep_trailing_newline = True,
		)
	template = env.get_template(filename)
	return template.render(kwargs)

#!/usr/bin/python3
# -*- coding: utf-8 -*-

"""
Language-neutral descriptions of generated functions and their lowering to Python functions.
"""

import numpy as np

from scicompdsl._expressions import to_source, _as_expression
from scicompdsl._helpers import render_template

def static_vector(like, values):
	"""
	Returns a new read-only vector containing `values`. If `like` is a tuple, so is the result; otherwise it is a NumPy array whose type is that of `like`’s elements promoted with that of the values.
	"""
	if isinstance(like,tuple):
		return tuple(values)
	vector = np.array(values, dtype=np.result_type(np.asarray(like).dtype,*values))
	vector.flags.writeable = False
	return vector

#: everything that generated code can refer to besides its arguments and local bindings
NUMERIC_NAMESPACE = {
		"sin": np.sin,
		"cos": np.cos,
		"tan": np.tan,
		"exp": np.exp,
		"log": np.log,
		"sqrt": np.sqrt,
		"sinh": np.sinh,
		"cosh": np.cosh,
		"tanh": np.tanh,
		"abs": np.abs,
		"inf": np.inf,
		"nan": np.nan,
		"static_vector": static_vector,
	}

class FunctionDescription(object):
	"""
	Describes a function to be generated without committing to a target language. Calling it lowers it (once) to a Python function and calls the latter.

	Parameters
	----------
	name : string
		name of the generated function

	arguments : sequence of strings
		names of the positional arguments

	bindings : iterable of triples
		Each triple `(target, argument, index)` binds the local name `target` to the `index`-th entry of `argument` or, if `index` is `None`, to `argument` itself.

	body : iterable of pairs
		Each pair `(target, expression)` binds the local name `target` to the value of `expression`. Pairs are evaluated in order, after all bindings.

	outputs : iterable of triples
		Each triple `(argument, indices, expression)` writes the value of `expression` into `argument[indices]`.

	returns : sequence of expressions or `None`
		If not `None`, the function returns a new vector of these values (see `static_vector`) shaped like the argument `returns_like`.
	"""

	def __init__(self, name, arguments, bindings=(), body=(), outputs=(), returns=None, returns_like=None):
		self.name = name
		self.arguments = tuple(arguments)
		self.bindings = list(bindings)
		self.body = [ (target,_as_expression(value)) for target,value in body ]
		self.outputs = [ (argument,tuple(indices),_as_expression(value)) for argument,indices,value in outputs ]
		self.returns = None if returns is None else [ _as_expression(value) for value in returns ]
		self.returns_like = returns_like
		self._function = None
		self._check_names()

	def _check_names(self):
		targets = [binding[0] for binding in self.bindings] + [target for target,_ in self.body]
		for target in targets:
			if target in NUMERIC_NAMESPACE or target in self.arguments:
				raise ValueError("The name %s is reserved in generated functions and cannot be used for a variable." % target)

	def lines(self):
		for target,argument,index in self.bindings:
			yield target, argument if index is None else "%s[%i]" % (argument,index)
		for target,expression in self.body:
			yield target, to_source(expression)
		for argument,indices,expression in self.outputs:
			yield "%s[%s]" % (argument,", ".join(map(str,indices))), to_source(expression)

	@property
	def source(self):
		returns = None
		if self.returns is not None:
			returns = "static_vector(%s, (%s))" % (
					self.returns_like,
					"".join( to_source(value)+", " for value in self.returns )
				)
		return render_template(
				"generated_function.jinja",
				name = self.name,
				arguments = self.arguments,
				lines = list(self.lines()),
				returns = returns,
			)

	def lower(self):
		"""
		Compiles the source and returns the resulting Python function. The source is stored as the function’s attribute `source`.
		"""
		source = self.source
		namespace = dict(NUMERIC_NAMESPACE)
		exec(compile(source,"<generated %s>"%self.name,"exec"), namespace)
		function = namespace[self.name]
		function.source = source
		return function

	@property
	def function(self):
		if self._function is None:
			self._function = self.lower()
		return self._function

	def __call__(self,*args):
		return self.function(*args)

	def __repr__(self):
		return self.source

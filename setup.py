from setuptools import setup
from io import open

requirements = [
	'jitcxde_common>=1.5',
	'symengine>=0.9',
	'jinja2',
	'scipy',
	'numpy'
]

setup(
	name = 'scicompdsl',
	version = '0.1.0',
	description = 'Symbolic modelling of differential-equation systems with generated numerical functions',
	long_description = open('README.rst', encoding='utf8').read(),
	python_requires=">=3.10",
	packages = ['scicompdsl'],
	package_data = {'scicompdsl': ['generated_function.jinja']},
	include_package_data = True,
	install_requires = requirements,
	extras_require = {'test': ['pytest']},
	classifiers = [
		'Development Status :: 3 - Alpha',
		'Operating System :: POSIX',
		'Operating System :: MacOS :: MacOS X',
		'Operating System :: Microsoft :: Windows',
		'Programming Language :: Python',
		'Topic :: Scientific/Engineering :: Mathematics',
		],
)

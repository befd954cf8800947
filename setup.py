import re
import setuptools

# Read the version without importing ivpy, since its dependencies may not be installed yet at build time.
with open('ivpy/__init__.py', 'rt') as f:
    version = re.search(r"^__version__ = '([^']+)'", f.read(), re.MULTILINE).group(1)

long_description = open('README.md').read()

setuptools.setup(
    name='ivpy',
    version=version,
    description='Initial value problem solvers for ODEs (fixed-step, adaptive, and symplectic)',
    long_description_content_type='text/markdown',
    long_description=long_description,
    keywords=['numerical computation ordinary differential equations initial value problem runge kutta adaptive symplectic integration'],
    license='MIT License',
    packages=setuptools.find_packages(exclude=('tests', 'tests.*')),
    install_requires=list(map(str.strip, open('requirements.txt', 'rt').readlines())),
    extras_require={
        'test': ['pytest', 'scipy', 'sympy'],
    },
    python_requires='>=3.6',
)

from setuptools import setup, find_packages
import re

# Read version from shahocalc/__init__.py
with open('shahocalc/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='shaho-calc',
    version=version,
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0,<2',
        ],
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'shaho-calc=shahocalc.cli.__main__:main',
            'shaho-calc-mcp=shahocalc.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Japanese social insurance filing calculations: era dates, standard remuneration, dependent form rules.',
    python_requires='>=3.10',
)

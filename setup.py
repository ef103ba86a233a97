from setuptools import setup, find_packages
import re

# Read version from hrpayroll/__init__.py
with open('hrpayroll/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='hr-payroll',
    version=version,
    packages=find_packages(include=['hrpayroll', 'hrpayroll.*']),
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
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
            'hr-payroll=hrpayroll.cli.__main__:main',
            'hr-payroll-mcp=hrpayroll.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Monthly payroll, progressive income tax and year-end reconciliation.',
    python_requires='>=3.10',
)

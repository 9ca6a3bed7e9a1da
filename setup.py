"""
Setup script for the Microsoft 365 Search CLI.

Installation:
    pip install -e .            # Development mode (editable install)
    pip install -e ".[test]"    # With test dependencies

After installation, run with:
    m365 search externalconnection add --help
"""

from setuptools import setup, find_packages

# Read requirements from requirements.txt
with open('requirements.txt') as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

setup(
    name='m365-search-cli',
    version='1.0.0',
    description='Microsoft 365 CLI - Microsoft Search external connection commands',
    author='M365 Search CLI Team',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=requirements,
    extras_require={
        'test': ['pytest>=7.0'],
    },
    python_requires='>=3.10',
    entry_points={
        'console_scripts': [
            'm365=m365_search.main:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Environment :: Console',
        'Programming Language :: Python :: 3.10',
        'Operating System :: OS Independent',
    ],
)

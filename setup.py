from setuptools import setup, find_packages

setup(
    name='templatev',
    version='0.1.0',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'click>=8.0.0',
        'pydantic>=2.12.5',
        'jinja2>=3.1.4',
        'pyyaml>=6.0.2',
        'rich>=13.9.4',
    ],
    extras_require={
        'test': [
            'pytest>=7.0.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'templatev=templatev.cli:cli',
        ],
    },
    description='Validate and expand ${...} templates before they are used',
    python_requires='>=3.11',
)

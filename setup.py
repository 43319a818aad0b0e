"""Install the Connect account system."""

from setuptools import setup, find_packages

setup(
    name='connect-accounts',
    version='0.1.0',
    packages=find_packages(include=['connect_accounts', 'connect_accounts.*'],
                           exclude=['*test*']),
    install_requires=[
        "sqlalchemy",
        "pydantic",
        "pytz",
        "click",
        "python-json-logger",
    ],
    extras_require={
        'test': [
            "pytest",
            "hypothesis",
        ]
    },
    entry_points={
        'console_scripts': [
            'connect-accounts=connect_accounts.cli:cli',
        ]
    },
    zip_safe=False
)

"""Install the conference paper submission portal."""

from setuptools import setup, find_packages

setup(
    name='paperportal',
    version='0.1.0',
    packages=find_packages(exclude=['*tests*']),
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "pyjwt",
        "bcrypt",
        "wtforms",
        "email-validator",
        "pytz",
        "python-json-logger",
    ],
    extras_require={
        'test': [
            "pytest",
            "hypothesis",
            "mimesis",
        ]
    },
    zip_safe=False
)

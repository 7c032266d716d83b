from setuptools import setup, find_packages

setup(
    name="backsolve_engine",
    version="0.1.0",
    description="Spread and IRR backsolve engine for dated cash-flow streams",
    packages=find_packages(include=["backsolve_engine", "backsolve_engine.*"]),
    install_requires=[
        "numpy",
        "pandas",
    ],
    extras_require={
        "test": [
            "pytest",
            "scipy",
        ],
    },
    python_requires=">=3.8",
)

# sepsis_risk_engine/setup.py
from setuptools import setup, find_packages
import os

setup(
    name="sepsis_risk_engine",
    version="1.0.0",
    packages=find_packages(exclude=["test", "test.*"]),
    py_modules=["main"],
    python_requires=">=3.8",
    install_requires=[
        "pandas",
        "numpy",
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "python-multipart",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
    description="Explainable rule-based sepsis risk scoring engine",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
)

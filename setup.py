# setup.py
from setuptools import setup, find_packages

install_requires = [
    # --- REACTIVE STATE ---
    "FletXr",  # Rx primitives held by the stores (imports as fletx)

    # --- TRANSPORT ---
    "httpx>=0.27.0",  # Request pipeline (AsyncClient + event hooks)

    # --- MODELS & CONFIG ---
    "pydantic>=2.0.0",
    "python-dotenv>=1.0.0",
    "pyyaml>=6.0.0",  # Config tiers and the persisted credential

    # --- TESTS---
    "pytest-asyncio==1.3.0",
    "pytest"
]

setup(
    name="needle-dashboard",
    version="0.1.0",
    description="Needle|Dashboard session and data layer",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=install_requires,
    python_requires=">=3.11",
)

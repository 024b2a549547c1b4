#!/usr/bin/env python3
"""
Setup script for baton, an agent orchestration runtime
"""

import os

from setuptools import find_packages, setup

# Get version from environment or default
version = os.getenv("VERSION", "0.1.0")

setup(
    name="baton-agents",
    version=version,
    author="Baton Contributors",
    description="Run loop for LLM agents with tools, handoffs, guardrails, approvals and resumable state",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    python_requires=">=3.10",
    install_requires=[
        "mcp>=1.11.0,<2.0.0",
        "opentelemetry-api>=1.30.0,<2.0.0",
        "pydantic>=2.4.0,<3.0.0",
        "pydantic-core>=2.10.0",
        "tenacity>=8.0.0,<10.0.0",
        "typing-extensions>=4.13.2,<5.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=8.0.0,<9.0.0",
            "pytest-asyncio>=1.0.0,<1.4.0",
            "pytest-cov>=7.0.0,<8.0.0",
        ],
    },
    include_package_data=True,
    keywords=[
        "agents",
        "llm",
        "orchestration",
        "tools",
        "handoffs",
        "guardrails",
    ],
    zip_safe=False,
)

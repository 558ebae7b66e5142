from setuptools import find_packages, setup

# Read requirements from requirements.txt
with open("requirements.txt") as f:
    install_requires = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="chainvote",
    version="0.1.0",
    description="Student election service backed by a hash-chained vote ledger",
    packages=find_packages(exclude=[".venv", "tests", "docs"]),
    py_modules=["app", "config"],
    include_package_data=True,
    install_requires=install_requires,
    entry_points={
        "console_scripts": [
            "chainvote = chainvote.cli:cli",
            "chainvote-server = app:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
    extras_require={
        "dev": [
            "mypy",
            "flake8",
            "black",
            "isort",
            "pytest",
            "pytest-cov",
            "pytest-mock",
            "pytest-timeout",
        ],
        "test": [
            "pytest",
            "pytest-mock",
            "pytest-timeout",
        ],
        "docs": [
            "sphinx",
        ],
    },
)

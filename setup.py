from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith("#")]

setup(
    name="cabdispatch",
    version="0.1.0",
    description="Driver ranking, assignment and ride lifecycle engine for a ride-booking fleet",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["server", "run_server"],
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "responses>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "cabdispatch=cabdispatch.cli_module.cli:main",
            "cabdispatch-server=server:cli",
        ],
    },
)

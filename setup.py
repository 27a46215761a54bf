from setuptools import setup, find_packages

setup(
    name="loop-thread-simulator",
    version="0.1.0",
    description="Discrete event simulation of an event loop versus a thread pool",
    author="adamfilli",
    packages=find_packages(include=["loopthreadsim", "loopthreadsim.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.11",
)

from setuptools import setup, find_packages


setup(
    name="tarlet",
    version="0.1",
    packages=find_packages(),
    description="A minimal reader/writer for USTAR tar archives.",
    python_requires=">=3.8",
    install_requires=[],
    entry_points={
        "console_scripts": [
            "tarlet=tarlet.cli:main",
        ]
    },
)

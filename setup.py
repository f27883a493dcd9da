from setuptools import setup, find_namespace_packages

setup(
    name="podsmith",
    version="0.1.0",
    packages=find_namespace_packages(where="src", include=["podsmith*"]),
    package_dir={"": "src"},
    package_data={"podsmith": ["bindata/*.aci"]},
    python_requires=">=3.8",
    install_requires=[
        "pydantic>=2.0",
        "pyyaml>=6.0",
        "click>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "podsmith=podsmith.CLI.main:main",
        ],
    },
)

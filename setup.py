from setuptools import setup, find_packages

setup(
    name="oscillatory-cartpole",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "gymnasium",
        "numpy",
        "casadi",
        "matplotlib",
        "Pillow",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
    include_package_data=True,
    package_data={"oscillatory_cartpole.environments": ["*.json"]},
)

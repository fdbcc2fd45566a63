from setuptools import setup

setup(
    name="gym_backgammon",
    version="0.1.0",
    packages=["gym_backgammon", "gym_backgammon.envs", "gym_backgammon.rules"],
    py_modules=["benchmark_rules"],
    install_requires=[
        "numpy>=1.20.0",
        "gymnasium>=1.1.1",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
    description="Backgammon rule engine (casual, long backgammon, gul bara, tapa) with a Gymnasium environment",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
)

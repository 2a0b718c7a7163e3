from setuptools import find_packages, setup

setup(
    name="solashift",
    version="0.3.0",
    description="SOLA time-scale modification and pitch shifting for mono 16-bit PCM audio.",
    author="Araray Velho",
    author_email="araray@gmail.com",
    packages=find_packages(include=["solashift", "solashift.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "soundfile",
        "click",
        "tabulate",
        "rich",
        "pydantic>=2",
        "toml",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "solashift=solashift.cli.main:cli",
        ],
    },
)

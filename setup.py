"""Set-up file for pyvcs for installations using ``pip install .``"""
from setuptools import find_packages, setup


with open("requirements.txt") as f:
    required = f.read().splitlines()


setup(
    name="pyvcs",
    version="0.1.0",
    license="GPL",
    keywords=["chemical equilibrium gibbs minimization vcs multiphase"],
    install_requires=required,
    extras_require={"testing": ["pytest"]},
    description="Reaction adjustment step of the VCS multiphase equilibrium algorithm",
    platforms=["Linux", "Windows", "Mac OS-X"],
    packages=find_packages("src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    zip_safe=False,
)

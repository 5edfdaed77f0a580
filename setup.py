import os
import pathlib
from setuptools import setup, find_packages


__version__ = "0.3.0"

here = pathlib.Path(__file__).parent.resolve()
long_description = (here / "README.md").read_text(encoding="utf-8")


def load_requirements(path_dir=here, comment_char="#"):
    with open(os.path.join(path_dir, "requirements.txt"), "r") as file:
        lines = [line.strip() for line in file.readlines()]
    requirements = []
    for line in lines:
        # filer all comments
        if comment_char in line:
            line = line[: line.index(comment_char)]
        if line:  # if requirement is not empty
            requirements.append(line)
    return requirements


setup(
    name="femform",
    version=__version__,
    description="femform: variational forms, integral dispatch and distributed scalars for finite element assembly",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GNU",
    packages=find_packages(include=["femform", "femform.*"]),
    install_requires=load_requirements(),
    zip_safe=False,
    extras_require={
        "dev": ["pytest", "pytest-cov"],
        "mpi": ["mpi4py"],
    },
    include_package_data=True,
    python_requires=">=3.10",
)

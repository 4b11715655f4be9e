import setuptools

from pysolarnetwork import __version__

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="pysolarnetwork",
    version=__version__,
    author="SolarNetwork",
    description="Python module to sign SolarNetwork API requests and manage SolarNode controls",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url='https://github.com/SolarNetwork',
    packages=setuptools.find_packages(exclude=["*.tests", "*.tests.*"]),
    install_requires=[
        'requests',
        'python-dotenv',
        'python-dateutil',
    ],
    extras_require={
        'test': ['pytest'],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
)

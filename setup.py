from setuptools import setup, find_packages


setup(
    name="hsreg",
    version="0.1.0",
    description="Multi-resolution Horn-Schunck optical flow for image registration",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "opencv-python>=4.5,<5",
        "numba",
        "pydantic>=2",
        "h5py",
        "tifffile",
        "tomli; python_version < '3.11'",
    ],
    extras_require={
        "yaml": ["pyyaml"],
        "vis": ["matplotlib"],
        "test": ["pytest", "pyyaml"],
    },
    entry_points={
        "console_scripts": [
            "hsreg=hsreg.registration.cli:main",
        ],
    },
)

from setuptools import setup, find_namespace_packages

setup(
    name="wayguide",
    version="0.1.0",  # Update this version as you release new versions
    description="WayGuide: Indoor Wayfinding on Recorded Floor Graphs",
    author="WayGuide Developers",
    packages=find_namespace_packages(include=["wayguide", "wayguide.*"]),
    python_requires='>=3.8',
    install_requires=[
        "matplotlib>=3.7.1",
        "networkx>=2.8.4",
        "numpy>=1.22.4",
        "PyYAML>=6.0",
        "scipy>=1.10.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    include_package_data=True,
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
        "License :: OSI Approved :: MIT License",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Human Machine Interfaces",
    ],
    long_description=open("README.md", "r", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    entry_points={
        "console_scripts": [
            "wayguide-simulate=wayguide.run_navigation:main",
        ],
    },
)

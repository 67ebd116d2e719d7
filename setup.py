import os

import setuptools

# Change directory to allow installation from anywhere
script_folder = os.path.dirname(os.path.realpath(__file__))
os.chdir(script_folder)

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

# Installs
setuptools.setup(
    name="behavior_analyzer",
    version="0.1.0",
    description="Sampling-based trajectory evaluation and selection for autonomous driving logs",
    python_requires=">=3.9",
    packages=setuptools.find_packages(script_folder, exclude=["tests", "tests.*"]),
    package_dir={"": "."},
    package_data={"behavior_analyzer": ["planning/script/config/behavior_analysis/*.yaml"]},
    include_package_data=True,
    classifiers=[
        "Programming Language :: Python :: 3.9",
        "Operating System :: OS Independent",
    ],
    license="apache-2.0",
    install_requires=requirements,
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "run_behavior_analysis = behavior_analyzer.planning.script.run_behavior_analysis:main",
        ],
    },
)

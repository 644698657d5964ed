import setuptools

setuptools.setup(
    name="easyrtl",
    version="0.0.1",

    package_dir={"": "src"},
    package_data={"easyrtl": ["py.typed"]},
    packages=setuptools.find_packages(where="src"),
    python_requires="~=3.9",
    install_requires=["numpy", "pyverilog", "pyvcd<0.5"],
    extras_require={"test": ["pytest"]},
)

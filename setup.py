import os
import re

from setuptools import setup


def read_version():
    with open(os.path.join("oauth2core", "__init__.py")) as init_file:
        return re.search(r'^VERSION = "([^"]+)"', init_file.read(),
                         re.MULTILINE).group(1)


setup(name="python-oauth2-core",
      version=read_version(),
      description="Protocol core of an OAuth 2.0 authorization server",
      long_description=open("README.rst").read(),
      author="Markus Meyer",
      author_email="hydrantanderwand@gmail.com",
      url="https://github.com/wndhydrnt/python-oauth2",
      packages=[d[0].replace("/", ".") for d in os.walk("oauth2core") if not d[0].endswith("__pycache__")],
      install_requires=[
        "PyJWT>=2.0",
        "cryptography",
        "basicauth"
      ],
      extras_require={
        "test": ["mock", "pytest"]
      },
      classifiers=[
        "Development Status :: 4 - Beta",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
    ]
)

import io
import os
import re

from setuptools import find_packages
from setuptools import setup


# doc: https://packaging.python.org/en/latest/guides/distributing-packages-using-setuptools/
# build:
#      all: python -m build
#      wheel: python -m build --wheel
#      source: python -m build --sdist

def read(filename):
    filename = os.path.join(os.path.dirname(__file__), filename)
    with io.open(filename, mode="r", encoding='utf-8') as fd:
        return re.sub(r':[a-z]+:`~?(.*?)`', r'``\1``', fd.read())


setup(
    name="timer_demo",
    version="2026.10.19",
    license='GPLv3',

    author="timer_demo contributors",

    description="Interval and delayed callbacks: a repeating timer canceled by a one-shot timer",
    long_description=read("README.md"),
    long_description_content_type="text/markdown",

    packages=find_packages(exclude=('tests', 'examples')),

    install_requires=['sortedcontainers'],
    python_requires='>=3.7',

    entry_points={
        'console_scripts': ['timer-demo = timer_demo.demo:main'],
    },

    classifiers=[
        'Development Status :: 4 - Beta',
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    test_suite="tests",

)

"""
Setup file.
"""

import os

from setuptools import setup

URL = "https://github.com/zackees/jarbang"
KEYWORDS = "java kotlin groovy script jar build javac native-image jbang"
HERE = os.path.dirname(os.path.abspath(__file__))



if __name__ == "__main__":
    setup(
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        package_data={"jarbang": ["templates/*.j2"]},
        include_package_data=True)

from os.path import abspath, dirname, exists, join

from setuptools import setup

long_description = None
if exists("README.md"):
    with open("README.md") as file:
        long_description = file.read()


def read_requirements(filename):
    with open(abspath(join(dirname(__file__), filename))) as file:
        return [
            req.strip() for req in file
            if req.strip() and not req.startswith(("#", "-r"))
        ]


setup(
    name="hlsparse",
    author="hlsparse developers",
    version="1.0.0",
    license="MIT",
    zip_safe=False,
    include_package_data=True,
    install_requires=read_requirements("requirements.txt"),
    extras_require={"test": read_requirements("requirements-dev.txt")},
    packages=["hlsparse"],
    description="Parser for HLS (RFC 8216) m3u8 playlists",
    long_description=long_description,
    long_description_content_type="text/markdown",
    python_requires=">=3.11",
)

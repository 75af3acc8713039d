from setuptools import setup

setup(
    name="sshpick",
    version="1.0.0",
    description="Pick an SSH host from ssh config, known_hosts and /etc/hosts in a terminal UI",
    packages=["sshpick", "sshpick.tui"],
    install_requires=[
        "paramiko>=3.0",
        "rich>=13.0",
        "textual>=0.47",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "sshpick=sshpick.tui:main",
        ],
    },
    python_requires=">=3.9",
)

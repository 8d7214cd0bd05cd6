[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mqttscope"
version = "1.0.0"
description = "Desktop MQTT explorer with a topic tree, message history, traffic simulator and a small device dashboard"
requires-python = ">=3.10"
keywords = ["mqtt", "explorer", "iot", "dashboard", "simulator", "broker", "tkinter"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: X11 Applications",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications",
    "Topic :: Home Automation",
    "Topic :: System :: Networking :: Monitoring",
]
dependencies = [
    "paho-mqtt>=2.0",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
mqttscope = "mqttscope.main:main"

[tool.hatch.build.targets.wheel]
packages = ["mqttscope"]

[tool.pytest.ini_options]
addopts = "-ra"

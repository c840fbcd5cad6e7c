#  Copyright © 2025 Bentley Systems, Incorporated
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#      http://www.apache.org/licenses/LICENSE-2.0
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

"""Logging helpers for the resource-management clients.

All loggers created by this package live below the `arm` logger, so that applications can configure the verbosity of
the whole SDK in one place::

    logging.getLogger("arm").setLevel(logging.DEBUG)
"""

import logging

__all__ = ["getLogger"]

_ROOT_NAME = "arm"

logging.getLogger(_ROOT_NAME).addHandler(logging.NullHandler())


def getLogger(name: str | None = None) -> logging.Logger:  # noqa: N802
    """Get a logger that is a child of the package root logger.

    :param name: The name of the child logger, e.g. "connector". If None, the root package logger is returned.

    :return: The requested logger.
    """
    if not name:
        return logging.getLogger(_ROOT_NAME)
    return logging.getLogger(f"{_ROOT_NAME}.{name}")

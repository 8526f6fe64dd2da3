# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

# Quizboard HTTP service entry point.
#
# Serves the FastAPI app with uvicorn. The container platform provides the
# port to listen on through $PORT.

# Standard library imports
import logging
import os

# Third-party library imports
import uvicorn

# Local application imports
from quizboard.app import app
from quizboard.config import get_settings

DEFAULT_PORT = 8080


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", DEFAULT_PORT)),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()

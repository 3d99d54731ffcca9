"""
Main entrypoint used by CI and Docker.

This script:
- Starts the server process
- Launches a client against it
- Sends a requests file (one JSON calculation per line) provided as argument

The goal is to validate:
- Socket communication
- Multiprocessing lifecycle
- End-to-end correctness of the calculation engine
"""

import argparse
from multiprocessing import Process
from pathlib import Path
import time

from pydantic import BaseModel, FilePath, ValidationError

from calculator_client_server.client.client import CalculatorClient
from calculator_client_server.common.config import Settings, get_settings
from calculator_client_server.common.logger import logger, setup_logging
from calculator_client_server.server.server import CalculatorServer


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    file_path : FilePath
        Path to the file containing calculation requests.
    """

    file_path: FilePath


def run_server(settings: Settings) -> None:
    """
    Start the calculator server.

    The server runs in its own process and listens
    for incoming socket connections.
    """
    setup_logging(settings.log_level)
    server = CalculatorServer(host=settings.host, port=settings.port)
    server.start()


def parse_args() -> CliArgs:
    """
    Parse and validate command-line arguments.

    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = argparse.ArgumentParser(
        description="Calculator client/server integration runner"
    )

    parser.add_argument(
        "file_path",
        help="Path to the file containing calculation requests (JSON lines)",
    )

    args = parser.parse_args()

    try:
        return CliArgs(file_path=args.file_path)
    except ValidationError as exc:
        parser.error(str(exc))


def build_output_path(input_path: Path) -> Path:
    """
    Construct a safe output file path based on the input file.

    - Preserves the original folder
    - Replaces dots in extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/requests.7z
    output: resources/requests_7z_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    suffixes = "".join(input_path.suffixes)
    base = input_path.name[: -len(suffixes)] if suffixes else input_path.name
    return input_path.with_name(f"{base}{suffixes.replace('.', '_')}_results.txt")


def main() -> None:
    """
    Main function executed by CI or Docker.
    """
    settings = get_settings()
    setup_logging(settings.log_level)

    cli_args = parse_args()
    input_path: Path = Path(cli_args.file_path)
    output_path: Path = build_output_path(input_path)

    server_process = Process(target=run_server, args=(settings,))
    server_process.start()

    # Give the server time to start listening
    time.sleep(1)

    try:
        client = CalculatorClient(host=settings.host, port=settings.port)
        client.send_file(input_path, output_path)
        logger.info(f"📄✅ Replies written to {output_path}")
    finally:
        # Ensure the server is always stopped
        server_process.terminate()
        server_process.join()


if __name__ == "__main__":
    main()

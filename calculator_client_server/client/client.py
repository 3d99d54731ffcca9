"""TCP client."""
import json
import math
from pathlib import Path
import socket
import tarfile
import tempfile
from typing import Any, Dict, FrozenSet, Iterator, Literal
import zipfile

import py7zr
from pydantic import BaseModel, ConfigDict, Field, FilePath, IPvAnyAddress


# Operations whose operand is an angle; the server only accepts radians
ANGLE_OPERATIONS: FrozenSet[str] = frozenset({"sin", "cos", "tan"})


def to_radians(payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of the payload with its angle converted from degrees to radians.

    Payloads that are not sin/cos/tan requests with a numeric operand are returned unchanged.

    :param dict payload: Calculation request payload

    :return: Payload ready to be sent to the server
    :rtype: dict
    """
    a = payload.get("a")
    if (
        payload.get("type") != "advanced"
        or payload.get("operation") not in ANGLE_OPERATIONS
        or isinstance(a, bool)
        or not isinstance(a, (int, float))
    ):
        return payload
    return {**payload, "a": a * math.pi / 180}


class CalculatorClient(BaseModel):
    """
    TCP client responsible for sending calculation requests to the server and receiving replies.

    The TCP client:
    - sends a single calculation request, or
    - reads JSON requests (one per line) from a plain text file or an archive
    - sends raw request lines to the server over a TCP socket
    - receives reply envelopes from the server
    - writes replies into an output file
    """

    # Make the Pydantic instance immutable (read-only), to prevent errors
    # that could be caused by changes to the network configuration during execution.
    model_config = ConfigDict(frozen=True)

    host: IPvAnyAddress = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=9000, ge=1, le=65535, description="Server TCP port")

    def _exchange(self, content: str) -> Iterator[bytes]:
        """
        Send request lines to the server and yield the reply chunks as they arrive.

        :param str content: Newline-separated JSON requests

        :return: Iterator over received byte chunks
        :rtype: Iterator[bytes]
        """
        # Open a TCP socket to the server
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.connect((str(self.host), self.port))
            s.sendall(content.encode("utf-8"))
            # Signal that no more data will be sent
            s.shutdown(socket.SHUT_WR)

            while True:
                # recv() returns an empty bytes object (b"") when the server has closed the connection
                chunk = s.recv(4096)
                if not chunk:
                    break
                yield chunk

    def calculate(
        self,
        payload: Dict[str, Any],
        angle_unit: Literal["rad", "deg"] = "rad",
    ) -> Dict[str, Any]:
        """
        Send one calculation request and return the server reply.

        :param dict payload: Request payload, e.g. {"type": "basic", "operation": "sum", "a": 2, "b": 3}
        :param str angle_unit: Unit of the operand of sin/cos/tan; degrees are converted before sending

        :return: Reply envelope with keys "line", "status" and "response"
        :rtype: dict
        :raises ValueError: If the server sent no reply
        """
        if angle_unit == "deg":
            payload = to_radians(payload)

        raw = b"".join(self._exchange(json.dumps(payload) + "\n")).decode("utf-8")
        lines = [line for line in raw.splitlines() if line.strip()]
        if not lines:
            raise ValueError("🔌❌ No reply received from server")
        return json.loads(lines[0])

    def send_file(self,
        input_file: FilePath,
        output_file: Path,
    ) -> None:
        """
        Send an input file containing JSON requests to the server and write the replies to an output file.

        :param FilePath input_file: Path to the input file or archive
        :param Path output_file: Path where replies will be written

        :return: None
        :raises ValueError: If the archive format is unsupported or contains no .txt file
        """
        # Load requests from file or archive
        if input_file.suffix in (".txt", ".jsonl"):
            content = input_file.read_text(encoding="utf-8")
        else:
            # Archive file: extract the first text file found
            content = self._extract_archive(input_file)

        with output_file.open("w", encoding="utf-8") as f_out:
            for chunk in self._exchange(content):
                # Flushing forces the data to be written to disk immediately, ensuring progress is not lost
                # if the process is interrupted (e.g. KeyboardInterrupt or crash)
                f_out.write(chunk.decode("utf-8"))
                f_out.flush()

    def _extract_archive(self, archive_path: FilePath) -> str:
        """
        Extract the first .txt file found in a supported archive and return its content as a string.

        Supported formats:
        - .zip
        - .tar.xz
        - .7z

        :param FilePath archive_path: Path to the archive file

        :return: Content of the extracted .txt file
        :rtype: str
        :raises ValueError: If no .txt file is found or format is unsupported
        """
        # Create a temporary directory for safe extraction
        with tempfile.TemporaryDirectory() as tmpdir:
            tmpdir_path = Path(tmpdir)
            if archive_path.suffix == ".zip":
                with zipfile.ZipFile(archive_path, "r") as zf:
                    txt_files = [f for f in zf.namelist() if f.endswith(".txt")]
                    if not txt_files:
                        raise ValueError("📄❌ No .txt file found in zip archive")
                    zf.extract(txt_files[0], path=tmpdir_path)
                    return (tmpdir_path / txt_files[0]).read_text(encoding="utf-8")

            elif archive_path.suffixes[-2:] == [".tar", ".xz"]:
                with tarfile.open(archive_path, "r:xz") as tf:
                    txt_files = [m for m in tf.getmembers() if m.name.endswith(".txt")]
                    if not txt_files:
                        raise ValueError("📄❌ No .txt file found in tar.xz archive")
                    tf.extract(txt_files[0], path=tmpdir_path, filter="data")
                    return (tmpdir_path / txt_files[0].name).read_text(encoding="utf-8")

            elif archive_path.suffix == ".7z":
                with py7zr.SevenZipFile(archive_path, mode="r") as archive:
                    txt_files = [f for f in archive.getnames() if f.endswith(".txt")]
                    if not txt_files:
                        raise ValueError("📄❌ No .txt file found in 7z archive")
                    archive.extract(targets=[txt_files[0]], path=tmpdir_path)
                    return (tmpdir_path / txt_files[0]).read_text(encoding="utf-8")

            else:
                raise ValueError(f"📄❌ Unsupported archive format: {archive_path.suffix}")

"""TCP server that evaluates calculation requests using worker processes."""
from multiprocessing import Pipe, Process, cpu_count
from multiprocessing.connection import Connection, wait
import socket
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress

from calculator_client_server.common.logger import logger
from calculator_client_server.common.models import ReplyEnvelope, ServerErrorResponse
from calculator_client_server.server.worker import WorkerProcess


# (line number, worker process, parent end of the pipe)
ActiveWorker = Tuple[int, Process, Connection]

# Seconds to wait for a worker reply before checking for dead workers
POLL_INTERVAL: float = 0.05


class CalculatorServer(BaseModel):
    """
    TCP socket server handling calculation requests from clients.

    Protocol:
        - The client sends one JSON request per line, then shuts down its write side.
        - The server sends back one JSON reply envelope per non-empty line, in input order.

    Features:
        - Spawns one worker process per request line.
        - Ensures each worker is destroyed immediately after finishing.
        - Handles multiple simultaneous workers up to CPU core count.
    """

    # Allow arbitrary types like multiprocessing.Connection
    model_config = ConfigDict(arbitrary_types_allowed=True)

    host: IPvAnyAddress = Field(default="127.0.0.1", description="Server host address")
    port: int = Field(default=9000, ge=1, le=65535, description="Server TCP port")

    def _receive_data(self, conn: socket.socket) -> List[str]:
        """
        Receive all data from the client connection and return non-empty lines.

        :param socket.socket conn: Connected client socket

        :return: List of non-empty request lines
        :rtype: List[str]
        """
        # Note: chunks are small pieces of data read from a TCP stream, as data may arrive in multiple packets
        chunks: List[bytes] = []
        while True:
            chunk: bytes = conn.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        data: List[str] = b"".join(chunks).decode("utf-8").splitlines()
        # Remove empty lines
        return [line.strip() for line in data if line.strip()]

    def _spawn_worker(self, request_line: str, line_number: int) -> ActiveWorker:
        """
        Spawn a WorkerProcess for the given request line.

        :param str request_line: JSON calculation request
        :param int line_number: Line number of the request in input

        :return: Tuple of (line_number, Process, parent_pipe)
        :rtype: ActiveWorker
        """
        parent_conn, child_conn = Pipe()
        worker = WorkerProcess(conn=child_conn, request_line=request_line, line_number=line_number)
        process = Process(target=worker.run)
        process.start()
        # The child end now belongs to the worker process
        child_conn.close()
        return line_number, process, parent_conn

    def _collect_finished_workers(
        self, active_workers: List[ActiveWorker], replies: Dict[int, str]
    ) -> None:
        """
        Collect replies from all finished workers.

        Finished workers are removed from the active_workers list. A worker that
        died without replying gets a 500 reply.

        :param list active_workers: List of tuples (line_number, Process, Pipe)
        :param dict replies: Reply JSON strings by line number, filled in place
        """
        wait([pipe_conn for _, _, pipe_conn in active_workers], timeout=POLL_INTERVAL)

        # Iterate in reverse to safely remove finished workers while iterating
        for i in reversed(range(len(active_workers))):
            line_number, proc, pipe_conn = active_workers[i]
            if pipe_conn.poll():
                try:
                    replies[line_number] = pipe_conn.recv()
                except EOFError:
                    replies[line_number] = self._internal_error(line_number)
            elif not proc.is_alive():
                logger.error(f"👷💀 Worker for line {line_number} exited without replying")
                replies[line_number] = self._internal_error(line_number)
            else:
                continue

            pipe_conn.close()
            proc.join()
            active_workers.pop(i)

    @staticmethod
    def _internal_error(line_number: int) -> str:
        return ReplyEnvelope(
            line=line_number, status=500, response=ServerErrorResponse()
        ).model_dump_json()

    def process_requests(self, data: List[str]) -> List[str]:
        """
        Evaluate request lines with at most one worker per CPU core.

        :param List[str] data: Non-empty request lines

        :return: Reply JSON strings, in the same order as data
        :rtype: List[str]
        """
        # Limit number of active workers to CPU cores or number of requests
        max_workers: int = max(1, min(cpu_count(), len(data)))
        active_workers: List[ActiveWorker] = []
        replies: Dict[int, str] = {}

        for line_number, request_line in enumerate(data, start=1):
            # Wait until a worker slot is available
            while len(active_workers) >= max_workers:
                self._collect_finished_workers(active_workers, replies)

            # Spawn new worker for current request
            active_workers.append(self._spawn_worker(request_line, line_number))

        # Collect remaining active workers
        while active_workers:
            self._collect_finished_workers(active_workers, replies)

        return [replies[line_number] for line_number in sorted(replies)]

    def handle_connection(self, conn: socket.socket) -> None:
        """
        Receive all requests from one client and send back the replies.

        :param socket.socket conn: Connected client socket
        """
        data: List[str] = self._receive_data(conn)
        logger.info(f"📥 Received {len(data)} request(s)")

        replies: List[str] = self.process_requests(data)

        # Send replies back to client
        try:
            conn.sendall("".join(f"{reply}\n" for reply in replies).encode("utf-8"))
            logger.info("✉️ Replies sent to client")
        except OSError as exc:
            logger.error(f"🔌❌ Client disconnected before receiving replies: {exc}")

    def start(self, max_connections: Optional[int] = None) -> None:
        """
        Start the TCP server and process calculation requests.

        Steps:
            1. Bind and listen on the specified host and port.
            2. Accept a client connection.
            3. Receive all requests from the client.
            4. Spawn worker processes for each request, respecting max CPU cores.
            5. Send the replies back to the client, in input order.
            6. Go back to 2 until max_connections clients were served (forever if None).

        :param Optional[int] max_connections: Number of clients to serve before returning

        :return: None
        """
        logger.info(f"🖥️ Starting server on {self.host}:{self.port}")

        # Create TCP socket
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((str(self.host), self.port))
            s.listen()
            logger.info("🖥️ Server listening")

            served: int = 0
            while max_connections is None or served < max_connections:
                conn, address = s.accept()
                logger.info(f"🔌 Client connected from {address[0]}:{address[1]}")
                with conn:
                    self.handle_connection(conn)
                served += 1

"""Chat server: keeps the room of joined clients and serves each connection."""

from __future__ import annotations

import argparse
import logging
import socket
import threading
from contextlib import suppress
from dataclasses import dataclass
from typing import BinaryIO

from simplechat.settings import SERVER_HOST, SERVER_PORT

logger = logging.getLogger(__name__)


class DuplicateClientError(ValueError):
    """A client with the same name is already in the chat."""


@dataclass(eq=False)
class Client:
    """A joined user and the connection that reaches them."""

    name: str
    conn: socket.socket | None = None

    def send(self, text: str) -> None:
        if self.conn is None:
            raise ConnectionError(f"client {self.name} has no connection")
        self.conn.sendall(text.encode("utf-8"))


class Chat:
    """The set of joined clients, keyed by name."""

    def __init__(self) -> None:
        self._clients: dict[str, Client] = {}
        self._lock = threading.RLock()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._clients

    def add_client(self, client: Client) -> None:
        with self._lock:
            if client.name in self._clients:
                raise DuplicateClientError(
                    f"клиент с именем '{client.name}' уже существует"
                )
            self._clients[client.name] = client

    def remove_client(self, name: str) -> None:
        with self._lock:
            self._clients.pop(name, None)

    def broadcast(self, sender_name: str, message: str) -> None:
        """Send ``message`` as one line to every client except the sender."""
        with self._lock:
            for name, client in self._clients.items():
                if name == sender_name:
                    continue
                try:
                    client.send(message + "\n")
                except OSError as exc:
                    logger.warning(
                        "Не удалось отправить сообщение клиенту %s: %s", name, exc
                    )

    def send_private(self, sender: str, recipient: str, message: str) -> None:
        """Deliver a private message, or tell the sender the recipient is missing."""
        with self._lock:
            target = self._clients.get(recipient)
            if target is not None:
                text = f"[private from {sender}]: {message}\n"
                to = target
            else:
                to = self._clients.get(sender)
                if to is None:
                    return
                text = f"SERVER: Пользователь '{recipient}' не найден.\n"
            try:
                to.send(text)
            except OSError as exc:
                logger.warning("Не удалось отправить сообщение клиенту %s: %s", to.name, exc)


def _send(conn: socket.socket, text: str) -> None:
    with suppress(OSError):
        conn.sendall(text.encode("utf-8"))


def _read_line(reader: BinaryIO) -> str | None:
    """Return the next complete line, or None once the stream has ended."""
    line = reader.readline()
    if not line.endswith(b"\n"):
        return None
    return line.decode("utf-8", errors="replace")


def _peer_name(conn: socket.socket) -> object:
    try:
        return conn.getpeername()
    except OSError:
        return "unknown"


def _join(conn: socket.socket, reader: BinaryIO, chat: Chat, peer: object) -> str | None:
    try:
        line = _read_line(reader)
    except OSError as exc:
        logger.warning("Не удалось прочитать JOIN сообщение от %s: %s", peer, exc)
        return None
    if line is None:
        logger.warning("Не удалось прочитать JOIN сообщение от %s: EOF", peer)
        return None

    parts = line.strip().split(":", 1)
    if len(parts) != 2 or parts[0] != "JOIN" or not parts[1]:
        _send(conn, "ERROR: Первой командой должна быть JOIN:<username>\n")
        return None
    username = parts[1]

    try:
        chat.add_client(Client(name=username, conn=conn))
    except DuplicateClientError as exc:
        _send(conn, f"ERROR: {exc}\n")
        return None
    _send(conn, f"Вы успешно присоединились к чату как {username}!\n")
    return username


def _exchange_messages(
    conn: socket.socket, reader: BinaryIO, chat: Chat, username: str
) -> None:
    while True:
        try:
            line = _read_line(reader)
        except OSError as exc:
            logger.warning("Ошибка чтения от '%s': %s", username, exc)
            return
        if line is None:
            logger.info("Клиент '%s' отключился.", username)
            return

        trimmed = line.strip()
        if not trimmed:
            continue

        command = trimmed.split(":", 1)[0]
        if command == "MSG":
            parts = trimmed.split(":", 1)
            if len(parts) < 2 or not parts[1]:
                _send(conn, "ERROR: Неверный формат. Используйте MSG:<message>\n")
                continue
            chat.broadcast(username, f"{username}: {parts[1]}")
        elif command == "P_MSG":
            parts = trimmed.split(":", 2)
            if len(parts) < 3:
                _send(conn, "ERROR: Формат: PRIVATE_MSG:<получатель>:<сообщение>\n")
                continue
            chat.send_private(username, parts[1], parts[2])
        elif command == "QUIT":
            return
        else:
            _send(conn, f"ERROR: Неизвестная команда '{command}'\n")


def handle_client(conn: socket.socket, chat: Chat) -> None:
    """Serve one connection: JOIN first, then chat commands until QUIT or EOF."""
    peer = _peer_name(conn)
    logger.info("Новый клиент подключился: %s", peer)
    try:
        with conn.makefile("rb") as reader:
            username = _join(conn, reader, chat, peer)
            if username is None:
                return
            try:
                chat.broadcast(username, f"SERVER: {username} присоединился к чату.")
                _exchange_messages(conn, reader, chat, username)
            finally:
                chat.remove_client(username)
                logger.info("Пользователь '%s' покинул чат.", username)
                chat.broadcast("", f"SERVER: {username} покинул чат.")
    finally:
        try:
            conn.close()
        except OSError as exc:
            logger.warning("failed to close connection: %s", exc)


def serve(address: tuple[str, int]) -> None:
    """Listen on ``address`` and serve every client in its own thread."""
    chat = Chat()
    with socket.create_server(address) as listener:
        logger.info("server is listening on %s:%s", *address)
        while True:
            try:
                conn, _ = listener.accept()
            except OSError as exc:
                logger.warning("failed to accept connection: %s", exc)
                continue
            threading.Thread(
                target=handle_client, args=(conn, chat), daemon=True
            ).start()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the chat server.")
    parser.add_argument("--host", default=SERVER_HOST)
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        serve((args.host, args.port))
    except OSError as exc:
        logger.error("failed to listen: %s", exc)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0
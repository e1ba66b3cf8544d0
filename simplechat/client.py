"""Console chat client: sends encrypted messages and shows what arrives."""

from __future__ import annotations

import argparse
import logging
import os
import socket
import sys
import threading
from contextlib import suppress
from typing import TextIO

from simplechat.settings import SERVER_HOST, SERVER_PORT, simple_decrypt, simple_encrypt

logger = logging.getLogger(__name__)

JOIN_PROMPT = "Введите команду JOIN:<username> для входа в чат:"
JOIN_REQUIRED = "Сначала введите команду JOIN:<username>"
IN_CHAT = "Вы в чате! Используйте MSG:<сообщение>, P_MSG:<кому>:<сообщение> или QUIT."
P_MSG_USAGE = "Неверный формат P_MSG. Используйте P_MSG:<кому>:<сообщение>"
GENERAL_USAGE = "Используйте MSG:<сообщение>, P_MSG:<кому>:<сообщение> или QUIT."


class UsageError(ValueError):
    """The typed line is not a command the client can send."""


def is_join_command(line: str) -> bool:
    """Return True if ``line`` is a JOIN command with a name after it."""
    return line.startswith("JOIN:") and len(line.strip()) > 5


def format_incoming(line: str) -> str:
    """Turn a line from the server into the text shown to the user."""
    trimmed = line.strip()
    prefix, sep, content = trimmed.partition(":")
    if not sep:
        return trimmed
    if prefix.startswith("[private from"):
        idx = trimmed.find("]:")
        if idx == -1:
            return trimmed
        return trimmed[: idx + 2] + simple_decrypt(trimmed[idx + 2 :])
    if prefix == "SERVER":
        return trimmed
    return f"{prefix}:{simple_decrypt(content)}"


def encode_command(text: str) -> str:
    """Return the wire line for a typed command, encrypting message content."""
    if text.upper() == "QUIT":
        return "QUIT\n"
    if text.startswith("MSG:"):
        return f"MSG:{simple_encrypt(text[len('MSG:'):])}\n"
    if text.startswith("P_MSG:"):
        parts = text.split(":", 2)
        if len(parts) != 3:
            raise UsageError(P_MSG_USAGE)
        _, recipient, content = parts
        return f"P_MSG:{recipient}:{simple_encrypt(content)}\n"
    raise UsageError(GENERAL_USAGE)


def receive_messages(conn: socket.socket, out: TextIO) -> None:
    """Print every line from the server to ``out`` until the connection ends."""
    try:
        with conn.makefile("rb") as reader:
            for raw in reader:
                if not raw.endswith(b"\n"):
                    break
                print(format_incoming(raw.decode("utf-8", errors="replace")), file=out)
    except OSError as exc:
        print(f"Ошибка чтения от сервера: {exc}", file=out)
        return
    print("Соединение с сервером закрыто.", file=out)


def _chomp(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def _receive_then_exit(conn: socket.socket) -> None:
    receive_messages(conn, sys.stdout)
    sys.stdout.flush()
    os._exit(0)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Connect to the chat server.")
    parser.add_argument("--host", default=SERVER_HOST)
    parser.add_argument("--port", type=int, default=SERVER_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    try:
        conn = socket.create_connection((args.host, args.port))
    except OSError as exc:
        logger.error("Не удалось подключиться к серверу: %s", exc)
        return 1

    with conn:
        print(JOIN_PROMPT)
        lines = iter(sys.stdin)
        for raw in lines:
            line = _chomp(raw)
            if is_join_command(line):
                try:
                    conn.sendall(f"{line}\n".encode("utf-8"))
                except OSError as exc:
                    logger.error("Ошибка отправки команды JOIN: %s", exc)
                    return 1
                break
            print(JOIN_REQUIRED)
        else:
            logger.info("Завершение работы клиента.")
            return 0

        threading.Thread(target=_receive_then_exit, args=(conn,), daemon=True).start()
        print(IN_CHAT)

        for raw in lines:
            text = _chomp(raw)
            if not text:
                continue
            try:
                wire = encode_command(text)
            except UsageError as exc:
                print(exc)
                continue
            with suppress(OSError):
                conn.sendall(wire.encode("utf-8"))
            if wire == "QUIT\n":
                break

    logger.info("Клиент завершил работу.")
    return 0
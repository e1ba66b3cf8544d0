import socket
import threading

import pytest

from simplechat.server import Chat, Client, DuplicateClientError, handle_client


def _pair():
    client_side, server_side = socket.socketpair()
    client_side.settimeout(5)
    return client_side, server_side


def _start_handler(server_side, chat):
    thread = threading.Thread(target=handle_client, args=(server_side, chat), daemon=True)
    thread.start()
    return thread


def _read_line(sock):
    with sock.makefile("rb") as reader:
        return reader.readline().decode()


def test_add_and_remove_client():
    chat = Chat()
    chat.add_client(Client(name="alice"))
    assert "alice" in chat
    chat.remove_client("alice")
    assert "alice" not in chat


def test_add_existing_client():
    chat = Chat()
    chat.add_client(Client(name="bob"))
    with pytest.raises(DuplicateClientError, match="bob"):
        chat.add_client(Client(name="bob"))


def test_handle_client_full_flow():
    chat = Chat()
    client_side, server_side = _pair()
    thread = _start_handler(server_side, chat)
    with client_side, client_side.makefile("rb") as reader:
        client_side.sendall(b"JOIN:testuser\n")
        response = reader.readline().decode()
        assert "Вы успешно присоединились" in response
        client_side.sendall(b"MSG:hello\n")
        client_side.sendall(b"QUIT\n")
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert reader.readline() == b""
    assert "testuser" not in chat


def test_broadcast_skips_sender():
    chat = Chat()
    a_client, a_server = _pair()
    b_client, b_server = _pair()
    chat.add_client(Client("alice", a_server))
    chat.add_client(Client("bob", b_server))
    chat.add_client(Client("ghost"))
    chat.broadcast("alice", "SERVER: x")
    received = _read_line(b_client)
    assert received == "SERVER: x\n"
    a_client.setblocking(False)
    with pytest.raises(BlockingIOError):
        a_client.recv(1)
    assert "ghost" in chat
    assert "alice" in chat
    for sock in (a_client, a_server, b_client, b_server):
        sock.close()


def test_send_private_delivers_to_recipient():
    chat = Chat()
    a_client, a_server = _pair()
    b_client, b_server = _pair()
    chat.add_client(Client("alice", a_server))
    chat.add_client(Client("bob", b_server))
    chat.send_private("alice", "bob", "secret note")
    received = _read_line(b_client)
    assert received == "[private from alice]: secret note\n"
    a_client.setblocking(False)
    with pytest.raises(BlockingIOError):
        a_client.recv(1)
    assert "bob" in chat
    for sock in (a_client, a_server, b_client, b_server):
        sock.close()


def test_send_private_unknown_recipient_notifies_sender():
    chat = Chat()
    a_client, a_server = _pair()
    chat.add_client(Client("alice", a_server))
    chat.send_private("alice", "nobody", "hi")
    received = _read_line(a_client)
    assert received == "SERVER: Пользователь 'nobody' не найден.\n"
    assert "nobody" not in chat
    a_client.close()
    a_server.close()


def test_join_required_first():
    chat = Chat()
    client_side, server_side = _pair()
    thread = _start_handler(server_side, chat)
    with client_side, client_side.makefile("rb") as reader:
        client_side.sendall(b"HELLO\n")
        assert (
            reader.readline().decode()
            == "ERROR: Первой командой должна быть JOIN:<username>\n"
        )
        assert reader.readline() == b""
    thread.join(timeout=5)
    assert not thread.is_alive()


def test_join_with_taken_name():
    chat = Chat()
    chat.add_client(Client("bob"))
    client_side, server_side = _pair()
    thread = _start_handler(server_side, chat)
    with client_side, client_side.makefile("rb") as reader:
        client_side.sendall(b"JOIN:bob\n")
        assert (
            reader.readline().decode()
            == "ERROR: клиент с именем 'bob' уже существует\n"
        )
    thread.join(timeout=5)
    assert "bob" in chat


def test_other_clients_see_join_message_and_leave():
    chat = Chat()
    bob_client, bob_server = _pair()
    chat.add_client(Client("bob", bob_server))
    client_side, server_side = _pair()
    thread = _start_handler(server_side, chat)
    with client_side, client_side.makefile("rb") as reader, bob_client.makefile(
        "rb"
    ) as bob_reader:
        client_side.sendall(b"JOIN:testuser\n")
        reader.readline()
        assert bob_reader.readline().decode() == "SERVER: testuser присоединился к чату.\n"
        client_side.sendall(b"MSG:hello\n")
        assert bob_reader.readline().decode() == "testuser: hello\n"
        client_side.sendall(b"QUIT\n")
        assert bob_reader.readline().decode() == "SERVER: testuser покинул чат.\n"
    thread.join(timeout=5)
    assert "testuser" not in chat
    bob_client.close()
    bob_server.close()


def test_command_errors():
    chat = Chat()
    client_side, server_side = _pair()
    thread = _start_handler(server_side, chat)
    with client_side, client_side.makefile("rb") as reader:
        client_side.sendall(b"JOIN:carol\n")
        reader.readline()
        client_side.sendall(b"\nFOO:bar\n")
        assert reader.readline().decode() == "ERROR: Неизвестная команда 'FOO'\n"
        client_side.sendall(b"MSG:\n")
        assert (
            reader.readline().decode()
            == "ERROR: Неверный формат. Используйте MSG:<message>\n"
        )
        client_side.sendall(b"P_MSG:bob\n")
        assert (
            reader.readline().decode()
            == "ERROR: Формат: PRIVATE_MSG:<получатель>:<сообщение>\n"
        )
        client_side.sendall(b"QUIT\n")
    thread.join(timeout=5)
    assert "carol" not in chat


def test_eof_removes_client():
    chat = Chat()
    client_side, server_side = _pair()
    thread = _start_handler(server_side, chat)
    with client_side.makefile("rb") as reader:
        client_side.sendall(b"JOIN:dave\n")
        reader.readline()
        assert "dave" in chat
        client_side.shutdown(socket.SHUT_WR)
        thread.join(timeout=5)
    client_side.close()
    assert not thread.is_alive()
    assert "dave" not in chat
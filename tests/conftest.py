"""공용 테스트 픽스처"""

import base64
import io

import pytest
from paramiko import Message
from rich.console import Console

from ssh_launcher.profile import Profile, ProfileStore


def write_public_key(directory, filename, key_type="ssh-ed25519", payload=b"\x11" * 32, comment="user@host"):
    """OpenSSH 형식의 공개키 파일 생성"""
    msg = Message()
    msg.add_string(key_type)
    msg.add_string(payload)
    encoded = base64.b64encode(msg.asbytes()).decode()

    path = directory / filename
    line = f"{key_type} {encoded}"
    if comment:
        line += f" {comment}"
    path.write_text(line + "\n", encoding="utf-8")
    return path


@pytest.fixture
def profiles_file(tmp_path):
    return tmp_path / "launcher" / "profiles.json"


@pytest.fixture
def store(profiles_file):
    """템플릿 프로필 하나가 들어 있는 저장소"""
    s = ProfileStore(profiles_file)
    s.load()
    return s


@pytest.fixture
def web_profile():
    return Profile(name="web", address="10.0.0.1", user="admin")


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def quiet_console(output):
    return Console(file=output, width=200, color_system=None)


@pytest.fixture
def ssh_dir(tmp_path):
    directory = tmp_path / "dot_ssh"
    directory.mkdir()
    return directory


@pytest.fixture
def make_public_key(ssh_dir):
    """ssh_dir 에 공개키 파일을 만드는 팩토리"""
    def factory(filename, **kwargs):
        return write_public_key(ssh_dir, filename, **kwargs)
    return factory

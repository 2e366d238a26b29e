"""
프로세스 실행 모듈 - ssh, tmux, ssh-copy-id 외부 프로그램 실행

구현 방식:
- subprocess로 외부 프로그램을 실행하고 터미널 입출력을 그대로 연결
- 프로그램이 끝날 때까지 대기 후 종료 코드 반환
- tmux 실행 자체가 실패한 경우에만 직접 ssh 연결로 대체

tmux 사용 방식:
- tmux 세션 안: 새 윈도우(new-window)에서 ssh 실행 후 바로 메뉴로 복귀
- tmux 세션 밖: 새 세션(new-session)을 붙여 실행, 세션 종료 후 메뉴로 복귀
"""

import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console
from rich.markup import escape

from .profile import Profile


TMUX_WINDOW_NAME = "ssh-connection"


def is_tmux_available() -> bool:
    """tmux 설치 여부 확인"""
    return shutil.which('tmux') is not None


def is_running_in_tmux() -> bool:
    """현재 tmux 세션 내에서 실행 중인지 확인"""
    return os.environ.get('TMUX') is not None


@dataclass
class LaunchResult:
    """외부 프로그램 실행 결과"""
    command: list[str] = field(default_factory=list)
    exit_code: int = -1
    launched: bool = False              # 프로그램 시작 성공 여부
    error_message: str = ""

    @property
    def success(self) -> bool:
        return self.launched and self.exit_code == 0


def build_ssh_command(profile: Profile) -> list[str]:
    """직접 ssh 접속 명령 생성"""
    return ['ssh', profile.target]


def build_tmux_command(profile: Profile, inside_tmux: bool = None) -> list[str]:
    """
    tmux 안에서 ssh를 실행하는 명령 생성

    Args:
        profile: 접속할 프로필
        inside_tmux: tmux 세션 안인지 여부 (None이면 환경 변수로 판단)
    """
    if inside_tmux is None:
        inside_tmux = is_running_in_tmux()

    subcommand = 'new-window' if inside_tmux else 'new-session'
    return ['tmux', subcommand, '-n', TMUX_WINDOW_NAME] + build_ssh_command(profile)


def build_copy_id_command(profile: Profile, identity_file: str = None) -> list[str]:
    """ssh-copy-id 명령 생성"""
    command = ['ssh-copy-id']
    if identity_file:
        command.extend(['-i', str(identity_file)])
    command.append(profile.target)
    return command


class Launcher:
    """외부 프로그램을 현재 터미널에 연결하여 실행하는 클래스"""

    def __init__(self, console: Optional[Console] = None, use_tmux: bool = True, verbose: bool = False):
        """
        Args:
            console: 안내 메시지를 출력할 콘솔
            use_tmux: False면 항상 직접 ssh로 접속
            verbose: 실행하는 명령을 출력
        """
        self.console = console or Console()
        self.use_tmux = use_tmux
        self.verbose = verbose

    def run_command(self, command: list[str]) -> LaunchResult:
        """
        명령 실행 (표준 입출력 상속, 종료까지 대기)

        프로그램을 시작하지 못한 경우 예외 대신 launched=False 결과 반환
        """
        if self.verbose:
            self.console.print(f"[dim]실행: {escape(shlex.join(command))}[/dim]")

        try:
            exit_code = subprocess.call(command)
        except OSError as e:
            return LaunchResult(
                command=command,
                exit_code=-1,
                launched=False,
                error_message=str(e)
            )

        return LaunchResult(command=command, exit_code=exit_code, launched=True)

    def connect(self, profile: Profile) -> LaunchResult:
        """
        프로필로 SSH 접속

        tmux를 먼저 시도하고, tmux를 실행할 수 없을 때만 직접 ssh로 접속
        """
        if not self.use_tmux:
            return self.run_command(build_ssh_command(profile))

        result = self.run_command(build_tmux_command(profile))
        if result.launched:
            return result

        self.console.print(f"[red]tmux로 SSH를 시작하지 못했습니다: {escape(result.error_message)}[/red]")
        self.console.print("[yellow]직접 SSH 연결로 전환합니다...[/yellow]")
        return self.run_command(build_ssh_command(profile))

    def copy_key(self, profile: Profile, identity_file: str = None) -> LaunchResult:
        """ssh-copy-id로 공개키를 원격 서버에 등록"""
        return self.run_command(build_copy_id_command(profile, identity_file))

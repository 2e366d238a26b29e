"""
TUI (Terminal User Interface) 모듈 - rich 라이브러리 기반 메뉴

구현 방식:
- 화면(Screen) 열거형과 단일 루프로 메뉴 흐름 관리
- 각 화면 처리 함수는 다음 화면을 반환
- 외부 프로그램(ssh, tmux, ssh-copy-id) 종료 후 항상 메인 메뉴로 복귀

화면 흐름:
    MAIN -> CONNECT / ADD / MANAGE / IMPORT / EXIT
    MANAGE -> EDIT / REMOVE / COPY_KEY / MAIN
"""

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Prompt, Confirm, IntPrompt
from rich.text import Text
from rich import box

from . import __version__
from .profile import Profile, ProfileStore
from .launcher import Launcher, LaunchResult, is_tmux_available
from .openssh import find_public_keys, load_config_profiles


# 콘솔 인스턴스 (전역)
console = Console()


class Screen(Enum):
    """메뉴 화면 상태"""
    MAIN = "main"
    CONNECT = "connect"
    ADD = "add"
    MANAGE = "manage"
    EDIT = "edit"
    REMOVE = "remove"
    COPY_KEY = "copy_key"
    IMPORT = "import"
    EXIT = "exit"


def clear_screen():
    """화면 지우기"""
    os.system('clear' if os.name != 'nt' else 'cls')


def pause():
    """Enter 입력까지 대기"""
    Prompt.ask("\n계속하려면 Enter를 누르세요", default="", show_default=False)


def print_header():
    """헤더 출력"""
    header = Panel(
        Text(f"SSH Launcher v{__version__}", style="bold cyan", justify="center"),
        subtitle="SSH Connection Menu",
        box=box.DOUBLE
    )
    console.print(header)
    console.print()


def print_menu(title: str, options: list[tuple[str, str]], default: str = "q") -> str:
    """
    메뉴 출력 및 선택 받기

    Args:
        title: 메뉴 제목
        options: (키, 설명) 튜플 리스트
        default: 빈 입력 시 선택되는 키

    Returns:
        선택된 키
    """
    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=False,
        padding=(0, 2)
    )
    table.add_column("Key", style="bold yellow", width=8)
    table.add_column("Description", style="white")

    for key, desc in options:
        # rich 마크업 이스케이프: [b]는 bold로 해석되므로 \[ 사용
        table.add_row(f"\\[{key}]", desc)

    console.print(table)
    console.print()

    valid_keys = [opt[0].lower() for opt in options]
    while True:
        choice = Prompt.ask("선택", default=default).lower().strip()
        if choice in valid_keys:
            return choice
        console.print("[red]잘못된 선택입니다. 다시 입력하세요.[/red]")


def print_profiles_table(profiles: list[Profile], show_index: bool = False, title: str = "프로필 목록"):
    """프로필 목록 테이블 출력"""
    if not profiles:
        console.print(Panel("[yellow]등록된 프로필이 없습니다.[/yellow]", title=title))
        return

    table = Table(title=title, box=box.ROUNDED)

    if show_index:
        table.add_column("#", style="dim", width=4)
    table.add_column("이름", style="cyan", no_wrap=True)
    table.add_column("주소", style="green")
    table.add_column("사용자", style="blue")

    for i, profile in enumerate(profiles, 1):
        row = []
        if show_index:
            row.append(str(i))
        row.extend([escape(profile.name), escape(profile.address), escape(profile.user)])
        table.add_row(*row)

    console.print(table)


def print_launch_result(result: LaunchResult, program: str):
    """외부 프로그램 종료 결과 출력"""
    if not result.launched:
        console.print(f"[red]{program} 실행 실패: {escape(result.error_message)}[/red]")
    elif result.success:
        console.print(f"[yellow]{program} 프로세스가 종료되었습니다 (코드 0)[/yellow]")
    else:
        console.print(f"[red]{program} 프로세스가 코드 {result.exit_code}로 종료되었습니다[/red]")


def ask_required(label: str, default: str = None) -> str:
    """빈 값을 허용하지 않는 입력"""
    while True:
        if default is None:
            value = Prompt.ask(label)
        else:
            value = Prompt.ask(label, default=default)
        value = (value or "").strip()
        if value:
            return value
        console.print("[red]값을 입력해야 합니다.[/red]")


class SSHLauncherUI:
    """SSH Launcher 메인 UI 클래스"""

    def __init__(
        self,
        store: ProfileStore,
        launcher: Launcher,
        ssh_dir: Path = None,
        ssh_config: Path = None
    ):
        """
        Args:
            store: 프로필 저장소
            launcher: 외부 프로그램 실행기
            ssh_dir: 공개키를 찾을 디렉토리 (기본: ~/.ssh)
            ssh_config: 가져올 ssh 설정 파일 (기본: ~/.ssh/config)
        """
        self.store = store
        self.launcher = launcher
        self.ssh_dir = ssh_dir
        self.ssh_config = ssh_config
        self._handlers = {
            Screen.MAIN: self._main_menu,
            Screen.CONNECT: self._connect,
            Screen.ADD: self._add_profile,
            Screen.MANAGE: self._manage_menu,
            Screen.EDIT: self._edit_profile,
            Screen.REMOVE: self._remove_profile,
            Screen.COPY_KEY: self._copy_key_menu,
            Screen.IMPORT: self._import_profiles,
        }

    def run(self):
        """메인 루프 실행"""
        clear_screen()

        if self.store.load():
            console.print(
                f"[green]프로필 파일이 없어 템플릿을 생성했습니다: "
                f"{escape(str(self.store.profiles_file))}[/green]"
            )
            pause()
        elif self.store.skipped_duplicates:
            console.print(
                f"[yellow]중복된 프로필 {self.store.skipped_duplicates}개를 건너뛰었습니다: "
                f"{escape(str(self.store.profiles_file))}[/yellow]"
            )
            pause()

        screen = Screen.MAIN
        while screen is not Screen.EXIT:
            screen = self.step(screen)

        console.print("\n[green]SSH Launcher를 종료합니다. 안녕히 가세요![/green]\n")

    def step(self, screen: Screen) -> Screen:
        """
        화면 하나를 처리하고 다음 화면 반환

        각 흐름의 오류는 출력 후 메인 메뉴로 돌아감
        메인 메뉴에서의 Ctrl+C는 프로그램 종료로 전달
        """
        try:
            return self._handlers[screen]()
        except KeyboardInterrupt:
            if screen is Screen.MAIN:
                raise
            console.print("\n[yellow]취소되었습니다.[/yellow]")
        except (ValueError, IndexError, OSError) as e:
            console.print(f"\n[red]오류 발생: {escape(str(e))}[/red]")
            pause()
        return Screen.MAIN

    def _main_menu(self) -> Screen:
        """메인 메뉴"""
        clear_screen()
        print_header()

        if not self.launcher.use_tmux:
            tmux_status = "[dim]사용 안 함[/dim]"
        elif is_tmux_available():
            tmux_status = "[green]사용 가능[/green]"
        else:
            tmux_status = "[yellow]없음 (직접 연결)[/yellow]"

        status = f"등록 프로필: [cyan]{self.store.profile_count}[/cyan] | tmux: {tmux_status}"
        console.print(Panel(status, title="상태"))
        console.print()

        options = [
            ("1", "[blue]SSH 접속할 프로필 선택[/blue]"),
            ("2", "[green]새 프로필 추가[/green]"),
            ("3", "[cyan]프로필 관리 (수정/삭제/키 복사)[/cyan]"),
            ("4", "~/.ssh/config 에서 가져오기"),
            ("q", "[red]종료[/red]"),
        ]

        choice = print_menu("메인 메뉴", options, default="1")

        return {
            "1": Screen.CONNECT,
            "2": Screen.ADD,
            "3": Screen.MANAGE,
            "4": Screen.IMPORT,
            "q": Screen.EXIT,
        }[choice]

    def _manage_menu(self) -> Screen:
        """프로필 관리 메뉴"""
        clear_screen()
        print_header()

        options = [
            ("1", "[yellow]프로필 수정[/yellow]"),
            ("2", "[red]프로필 삭제[/red]"),
            ("3", "공개키 복사 (ssh-copy-id)"),
            ("b", "뒤로 가기"),
        ]

        choice = print_menu("프로필 관리", options, default="b")

        return {
            "1": Screen.EDIT,
            "2": Screen.REMOVE,
            "3": Screen.COPY_KEY,
            "b": Screen.MAIN,
        }[choice]

    def _choose_profile(self, title: str) -> Optional[int]:
        """
        번호로 프로필 선택

        Returns:
            선택된 프로필 위치 (취소 시 None)
        """
        profiles = self.store.list_profiles()
        if not profiles:
            console.print("[yellow]등록된 프로필이 없습니다.[/yellow]")
            pause()
            return None

        print_profiles_table(profiles, show_index=True, title=title)

        idx = IntPrompt.ask("프로필 번호 (0: 취소)", default=0)
        if idx <= 0 or idx > len(profiles):
            return None
        return idx - 1

    def _connect(self) -> Screen:
        """프로필을 골라 SSH 접속"""
        clear_screen()
        print_header()

        index = self._choose_profile("접속할 프로필 선택")
        if index is None:
            return Screen.MAIN

        profile = self.store.get(index)

        clear_screen()
        console.print(f"[blue]접속 시도: {escape(profile.label)}[/blue]")

        result = self.launcher.connect(profile)
        print_launch_result(result, "SSH")
        pause()
        return Screen.MAIN

    def _add_profile(self) -> Screen:
        """프로필 추가"""
        clear_screen()
        print_header()
        console.print(Panel("새 프로필 정보를 입력하세요", title="프로필 추가"))

        name = ask_required("서버 이름")
        address = ask_required("서버 IP 주소")
        user = ask_required("SSH 사용자 이름")

        if not Confirm.ask("이 프로필을 저장하시겠습니까?", default=True):
            console.print("[yellow]취소되었습니다.[/yellow]")
            return Screen.MAIN

        profile = Profile(name=name, address=address, user=user)
        self.store.add(profile)
        console.print("[green]새 프로필이 저장되었습니다![/green]")

        if Confirm.ask(
            "비밀번호 없이 로그인하도록 SSH 공개키를 이 서버에 복사하시겠습니까?",
            default=True
        ):
            self._copy_key(profile)

        return Screen.MAIN

    def _edit_profile(self) -> Screen:
        """프로필 수정"""
        clear_screen()
        print_header()

        index = self._choose_profile("수정할 프로필 선택")
        if index is None:
            return Screen.MAIN

        profile = self.store.get(index)
        console.print(f"\n[cyan]'{escape(profile.name)}' 수정 (Enter로 기존 값 유지)[/cyan]\n")

        name = ask_required("서버 이름", default=profile.name)
        address = ask_required("서버 IP 주소", default=profile.address)
        user = ask_required("SSH 사용자 이름", default=profile.user)

        if Confirm.ask("변경 사항을 저장하시겠습니까?", default=True):
            self.store.update(index, name=name, address=address, user=user)
            console.print("\n[green]프로필이 수정되었습니다.[/green]")
        else:
            console.print("\n[yellow]취소되었습니다.[/yellow]")

        pause()
        return Screen.MAIN

    def _remove_profile(self) -> Screen:
        """프로필 삭제"""
        clear_screen()
        print_header()

        index = self._choose_profile("삭제할 프로필 선택")
        if index is None:
            return Screen.MAIN

        profile = self.store.get(index)
        if Confirm.ask(f"[red]정말 '{escape(profile.label)}'을(를) 삭제하시겠습니까?[/red]", default=False):
            removed = self.store.remove(index)
            console.print(f"\n[green]{escape(removed.label)} 프로필이 삭제되었습니다.[/green]")
            pause()

        return Screen.MAIN

    def _copy_key_menu(self) -> Screen:
        """기존 프로필에 공개키 복사"""
        clear_screen()
        print_header()

        index = self._choose_profile("공개키를 복사할 프로필 선택")
        if index is None:
            return Screen.MAIN

        self._copy_key(self.store.get(index))
        return Screen.MAIN

    def _choose_identity(self) -> Optional[Path]:
        """
        ssh-copy-id에 넘길 공개키 선택

        키가 하나면 그대로 사용, 여러 개면 번호로 선택
        (0이면 ssh-copy-id 기본 동작)
        """
        keys = find_public_keys(self.ssh_dir)

        if not keys:
            console.print(
                "[yellow]~/.ssh 에서 공개키를 찾지 못했습니다. "
                "ssh-keygen으로 키를 먼저 생성하세요.[/yellow]"
            )
            return None

        if len(keys) == 1:
            console.print(f"[dim]사용할 키: {escape(str(keys[0]))}[/dim]")
            return keys[0].path

        table = Table(title="공개키 목록", box=box.ROUNDED)
        table.add_column("#", style="dim", width=4)
        table.add_column("파일", style="cyan")
        table.add_column("종류", style="green")
        table.add_column("지문", style="dim")
        for i, key in enumerate(keys, 1):
            table.add_row(str(i), escape(key.path.name), key.key_type, key.fingerprint)
        console.print(table)

        idx = IntPrompt.ask("사용할 키 번호 (0: 기본값)", default=0)
        if 1 <= idx <= len(keys):
            return keys[idx - 1].path
        return None

    def _copy_key(self, profile: Profile):
        """ssh-copy-id 실행 및 결과 출력"""
        identity = self._choose_identity()

        console.print(f"[blue]{escape(profile.target)} 에 SSH 공개키 복사 중...[/blue]")
        result = self.launcher.copy_key(profile, identity)

        if result.success:
            console.print("[green]SSH 키가 복사되었습니다! 이제 비밀번호 없이 접속할 수 있습니다.[/green]")
        else:
            print_launch_result(result, "ssh-copy-id")

        pause()

    def _import_profiles(self) -> Screen:
        """~/.ssh/config 의 Host 항목 가져오기"""
        clear_screen()
        print_header()

        candidates = [
            profile for profile in load_config_profiles(self.ssh_config)
            if self.store.find(profile.label) is None
        ]

        if not candidates:
            console.print("[yellow]가져올 새 Host 항목이 없습니다.[/yellow]")
            pause()
            return Screen.MAIN

        print_profiles_table(candidates, show_index=True, title="가져올 프로필")

        if Confirm.ask(f"{len(candidates)}개 프로필을 가져오시겠습니까?", default=True):
            added = self.store.import_profiles(candidates)
            console.print(f"\n[green]{len(added)}개 프로필을 가져왔습니다.[/green]")
            pause()

        return Screen.MAIN


def main(profiles_file: Path = None, use_tmux: bool = True, verbose: bool = False):
    """메인 진입점"""
    try:
        store = ProfileStore(profiles_file)
        launcher = Launcher(console, use_tmux=use_tmux, verbose=verbose)
        ui = SSHLauncherUI(store, launcher)
        ui.run()
    except KeyboardInterrupt:
        console.print("\n[yellow]프로그램이 중단되었습니다.[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"\n[red]오류 발생: {escape(str(e))}[/red]")
        sys.exit(1)

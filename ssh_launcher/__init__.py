"""SSH Launcher - 접속 프로필 메뉴와 ssh/tmux 실행 도구"""

__version__ = "1.5.0"

"""
Git Manager - чтение состояния рабочей копии

Ветка, HEAD commit и сравнение с remote tracking ref.
Ничего не коммитит и не пушит.
"""

import subprocess
import logging
from typing import Optional, Tuple
from pathlib import Path


logger = logging.getLogger(__name__)


GIT_COMMAND_TIMEOUT = 30
GIT_FETCH_TIMEOUT = 120


class GitManager:
    """Менеджер git операций (read-only)"""

    def __init__(
        self,
        project_path: str = ".",
        remote: str = "origin",
        command_timeout: int = GIT_COMMAND_TIMEOUT,
        fetch_timeout: int = GIT_FETCH_TIMEOUT
    ):
        self.project_path = Path(project_path)
        self.remote = remote
        self.command_timeout = command_timeout
        self.fetch_timeout = fetch_timeout

    def _run_git(self, *args, timeout: Optional[int] = None) -> Tuple[bool, str, str]:
        """Выполнить git команду"""
        if timeout is None:
            timeout = self.command_timeout
        try:
            result = subprocess.run(
                ['git', *args],
                cwd=self.project_path,
                capture_output=True,
                text=True,
                timeout=timeout
            )
            return result.returncode == 0, result.stdout, result.stderr
        except subprocess.TimeoutExpired:
            return False, "", f"Git command timed out after {timeout}s"
        except OSError as e:
            return False, "", str(e)

    def is_git_repo(self) -> bool:
        """Проверить что директория - git репозиторий"""
        success, _, _ = self._run_git('rev-parse', '--git-dir')
        return success

    def has_changes(self) -> bool:
        """Проверить есть ли uncommitted changes"""
        success, stdout, _ = self._run_git('status', '--porcelain')
        return success and bool(stdout.strip())

    def get_current_branch(self) -> Optional[str]:
        """Получить текущую ветку

        Returns:
            Branch name, or None in detached HEAD state / on error
        """
        success, stdout, _ = self._run_git('rev-parse', '--abbrev-ref', 'HEAD')
        if not success:
            return None
        branch = stdout.strip()
        if not branch or branch == "HEAD":
            return None
        return branch

    def get_head_sha(self) -> Optional[str]:
        """Full SHA of HEAD"""
        success, stdout, _ = self._run_git('rev-parse', 'HEAD')
        return stdout.strip() if success and stdout.strip() else None

    def fetch(self, branch: str) -> bool:
        """Обновить remote tracking ref для ветки"""
        success, _, stderr = self._run_git('fetch', self.remote, branch, timeout=self.fetch_timeout)
        if not success:
            logger.warning(f"git fetch {self.remote} {branch} failed: {stderr.strip()}")
        return success

    def get_remote_sha(self, branch: str) -> Optional[str]:
        """SHA of <remote>/<branch>, None if the branch was never pushed"""
        success, stdout, _ = self._run_git('rev-parse', '--verify', '--quiet', f'{self.remote}/{branch}')
        return stdout.strip() if success and stdout.strip() else None

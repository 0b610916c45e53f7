"""
Repo full name 解析。

不同平台的 full name 段数不同：
- `runatlantis/atlantis` -> ("runatlantis", "", "atlantis")
- `azuredevops/project/atlantis` -> ("azuredevops", "project", "atlantis")
- `gitlab/subgroup/runatlantis/atlantis` -> ("gitlab/subgroup/runatlantis", "", "atlantis")

解析失败时返回三个空字符串（不抛错），调用方以“全空”作为非法输入的哨兵值。
"""

from __future__ import annotations

from vcs_adapter.errors import MalformedIdentifierError


def split_azuredevops_repo_full_name(full_name: str) -> tuple[str, str, str]:
    """返回 (owner, project, repo)；两段式平台的 project 为空。"""
    first_slash = full_name.find("/")
    last_slash = full_name.rfind("/")
    if last_slash == -1 or last_slash == len(full_name) - 1:
        return "", "", ""
    if first_slash != last_slash and full_name.count("/") == 2:
        return full_name[:first_slash], full_name[first_slash + 1 : last_slash], full_name[last_slash + 1 :]
    # 单个分隔符，或多级 group：最后一个 / 之前全部算 owner
    return full_name[:last_slash], "", full_name[last_slash + 1 :]


def require_repo_full_name(full_name: str) -> tuple[str, str, str]:
    """严格版本：解析失败时抛 `MalformedIdentifierError`。"""
    owner, project, repo = split_azuredevops_repo_full_name(full_name)
    if not owner and not repo:
        raise MalformedIdentifierError(full_name)
    return owner, project, repo

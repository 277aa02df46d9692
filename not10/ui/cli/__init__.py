"""NOT10 CLI用户界面模块.

这个包提供命令行界面的NOT10游戏实现，包括：
- CLI游戏主类
- 渲染器（显示逻辑）
- 输入处理器（用户交互）
"""

from .cli_game import Not10CLI, main
from .render import CLIRenderer
from .input_handler import CLIInputHandler

__all__ = [
    'Not10CLI',
    'main',
    'CLIRenderer',
    'CLIInputHandler',
]

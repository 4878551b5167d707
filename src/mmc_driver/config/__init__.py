from .loader import default_config, load_config, resolve_solver_command

__all__ = ["default_config", "load_config", "resolve_solver_command"]

"""Launch commands from a file and schedule them round-robin with signals."""

__version__ = "0.1.0"
__all__ = ["tokenizer", "workloads", "launcher", "signaled", "scheduler", "dashboard"]
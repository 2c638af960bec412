from halyard.rollout.git_info import collect_git_info
from halyard.rollout.recorder import RolloutRecorder, is_persisted, rollout_filename

__all__ = ["RolloutRecorder", "collect_git_info", "is_persisted", "rollout_filename"]

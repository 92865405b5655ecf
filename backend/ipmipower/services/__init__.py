"""Business logic services: BMC access, power orchestration, WoL listener."""

"""ipmipower: Wake-on-LAN to IPMI power-on bridge."""

__version__ = "0.1.0"

"""HSM connector - local HTTP relay for a hardware security module.

The connector listens on a loopback address or a local socket and relays raw
command frames posted by HSM client libraries to a single attached device,
returning the device's raw response.

Architecture Overview:
- **API Layer**: FastAPI routes and the request middleware
- **Core Layer**: Configuration, logging, exceptions, allowlisting
- **Infrastructure Layer**: The device transport interface
"""

from proxmox_mcp_installer.cli.main import main

main()

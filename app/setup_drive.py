#!/usr/bin/env python3
"""
Prepare the Google Drive folder that receives event uploads.

    photo-uploader-setup            # test connection, create folder, print FOLDER_ID
    photo-uploader-setup test       # only test the connection
    photo-uploader-setup list       # list files already in FOLDER_ID
"""
import argparse
import asyncio
import sys
from datetime import date

from core.config import settings
from services.drive_service import DriveUploader


async def setup(drive: DriveUploader, name: str, parent: str | None) -> int:
    print("1. Testing Google Drive API connection...")
    conn = await drive.test_connection()
    if not conn["success"]:
        print(f"Failed to connect to Google Drive API: {conn['error']}", file=sys.stderr)
        print("Check that the service account key file exists, the Drive API is enabled, "
              "and the service account has access.", file=sys.stderr)
        return 1
    print("Google Drive API connection successful.\n")

    print("2. Creating event photo folder...")
    folder = await drive.create_folder(name, parent)
    if not folder["success"]:
        print(f"Failed to create folder: {folder['error']}", file=sys.stderr)
        return 1

    print(f"Folder name: {folder['folder_name']}")
    print(f"Folder id:   {folder['folder_id']}")
    print(f"Folder link: {folder['folder_link']}")
    print("\nAdd this line to your .env file:")
    print(f"FOLDER_ID={folder['folder_id']}")
    print("Share the folder link with guests so they can view uploaded photos.")
    return 0


async def test(drive: DriveUploader) -> int:
    conn = await drive.test_connection()
    if not conn["success"]:
        print(f"Connection failed: {conn['error']}", file=sys.stderr)
        return 1
    if conn.get("folder_id"):
        print(f"Connected to Drive folder: {conn['folder_name']} ({conn['folder_link']})")
    else:
        print(conn["message"])
    return 0


async def list_folder(drive: DriveUploader) -> int:
    listing = await drive.list_files()
    if not listing["success"]:
        print(f"Listing failed: {listing['error']}", file=sys.stderr)
        return 1
    for f in listing["files"]:
        print(f"{f.get('createdTime', '')}  {f.get('size', '-'):>10}  {f.get('name')}  {f.get('webViewLink', '')}")
    print(f"{listing['count']} file(s)")
    return 0


async def run(args: argparse.Namespace) -> int:
    drive = DriveUploader.from_settings(settings)
    try:
        if args.command == "test":
            return await test(drive)
        if args.command == "list":
            return await list_folder(drive)
        return await setup(drive, args.name or f"Event Photos - {date.today().isoformat()}", args.parent)
    finally:
        await drive.aclose()


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Google Drive setup for the Event Photo Uploader")
    ap.add_argument("command", nargs="?", choices=["setup", "test", "list"], default="setup")
    ap.add_argument("--name", help="Folder name (default: 'Event Photos - <today>')")
    ap.add_argument("--parent", help="Parent folder id for the new folder")
    args = ap.parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())

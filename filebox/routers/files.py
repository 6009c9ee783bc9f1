import base64
import binascii
from typing import List, Optional
from urllib.parse import unquote

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import FileResponse
from pydantic import ValidationError

from ..config import settings
from ..dependencies import get_extractor, get_resolver
from ..exceptions import InvalidInputError
from ..files import (
    CategorizeRequest,
    CreateFolderRequest,
    CreateTextFileRequest,
    DecompressRequest,
    Entry,
    FileContent,
    PathResolver,
    PathsRequest,
    RenameRequest,
    TransferRequest,
    TreeNode,
    UpdateFileContentRequest,
    UploadRequest,
    build_tree,
    categorize_entries,
    copy_entries,
    create_folder,
    create_text_file,
    delete_entries,
    get_download_path,
    get_file_content,
    iter_bytes,
    list_entries,
    list_files_recursive,
    move_entries,
    rename_entry,
    search_entries,
    update_file_content,
    upload_file,
)
from ..uploads.transport import FILE_NAME_HEADER, UPLOAD_PATH_HEADER
from ..utils.decompression import ArchiveExtractor, decompress_archive

router = APIRouter(tags=["files"])


def _no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Reading
@router.get("/files", response_model=List[Entry])
async def list_files(
    path: str = "/",
    query: Optional[str] = None,
    resolver: PathResolver = Depends(get_resolver),
):
    """List a folder, or search beneath it when ``query`` is given"""
    if query:
        return await search_entries(resolver, path, query)
    return await list_entries(resolver, path)


@router.get("/folder-tree", response_model=TreeNode)
async def get_folder_tree(resolver: PathResolver = Depends(get_resolver)):
    return await build_tree(resolver)


@router.get("/download-folder-list", response_model=List[str])
async def download_folder_list(
    path: str = "/", resolver: PathResolver = Depends(get_resolver)
):
    """Every file beneath a folder, for the client to download one by one"""
    return await list_files_recursive(resolver, path)


@router.get("/download-file")
async def download_file(path: str, resolver: PathResolver = Depends(get_resolver)):
    file_path = await get_download_path(resolver, path)
    return FileResponse(
        path=str(file_path),
        filename=file_path.name,
        media_type="application/octet-stream",
    )


@router.get("/file-content", response_model=FileContent)
async def get_file_content_endpoint(
    path: str, resolver: PathResolver = Depends(get_resolver)
):
    content = await get_file_content(resolver, path)
    return FileContent(content=content)


# Creating
@router.post("/upload", response_model=Entry, status_code=status.HTTP_201_CREATED)
async def upload_endpoint(
    request: Request, resolver: PathResolver = Depends(get_resolver)
):
    """
    Upload one file.

    A JSON body carries ``{path, fileName, content}`` with base64 content.
    Any other body is the raw file, streamed to disk; the target folder and
    name come from the percent-encoded ``X-Upload-Path`` and ``X-File-Name``
    headers.
    """
    chunk_size = settings.upload.chunk_size
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            upload = UploadRequest.model_validate_json(await request.body())
        except ValidationError as e:
            raise InvalidInputError(f"Invalid upload body: {e.errors()[0]['msg']}")
        try:
            data = base64.b64decode(upload.content, validate=True)
        except binascii.Error:
            raise InvalidInputError("File content is not valid base64")
        return await upload_file(
            resolver,
            upload.path,
            upload.file_name,
            iter_bytes(data, chunk_size),
            total_size=len(data),
        )

    file_name = request.headers.get(FILE_NAME_HEADER)
    if not file_name:
        raise InvalidInputError(f"Missing {FILE_NAME_HEADER} header")
    target_dir = unquote(request.headers.get(UPLOAD_PATH_HEADER, "/"))

    content_length = request.headers.get("content-length")
    total_size = int(content_length) if content_length and content_length.isdigit() else None

    return await upload_file(
        resolver, target_dir, unquote(file_name), request.stream(), total_size=total_size
    )


@router.post(
    "/create-folder", response_model=Entry, status_code=status.HTTP_201_CREATED
)
async def create_folder_endpoint(
    create_request: CreateFolderRequest,
    resolver: PathResolver = Depends(get_resolver),
):
    return await create_folder(resolver, create_request.path, create_request.folder_name)


@router.post("/create-file", response_model=Entry, status_code=status.HTTP_201_CREATED)
async def create_file_endpoint(
    create_request: CreateTextFileRequest,
    resolver: PathResolver = Depends(get_resolver),
):
    """Create a text file; ``.txt`` is added when the name has no extension"""
    return await create_text_file(
        resolver, create_request.path, create_request.file_name, create_request.content
    )


# Modifying
@router.post("/file-content", status_code=status.HTTP_204_NO_CONTENT)
async def update_file_content_endpoint(
    update_request: UpdateFileContentRequest,
    resolver: PathResolver = Depends(get_resolver),
):
    await update_file_content(resolver, update_request.path, update_request.content)
    return _no_content()


@router.post("/delete", status_code=status.HTTP_204_NO_CONTENT)
async def delete_endpoint(
    delete_request: PathsRequest, resolver: PathResolver = Depends(get_resolver)
):
    await delete_entries(resolver, delete_request.paths)
    return _no_content()


@router.post("/copy", status_code=status.HTTP_204_NO_CONTENT)
async def copy_endpoint(
    copy_request: TransferRequest, resolver: PathResolver = Depends(get_resolver)
):
    await copy_entries(resolver, copy_request.paths, copy_request.destination_path)
    return _no_content()


@router.post("/move", status_code=status.HTTP_204_NO_CONTENT)
async def move_endpoint(
    move_request: TransferRequest, resolver: PathResolver = Depends(get_resolver)
):
    await move_entries(resolver, move_request.paths, move_request.destination_path)
    return _no_content()


@router.post("/rename", status_code=status.HTTP_204_NO_CONTENT)
async def rename_endpoint(
    rename_request: RenameRequest, resolver: PathResolver = Depends(get_resolver)
):
    await rename_entry(resolver, rename_request.entry_path, rename_request.new_name)
    return _no_content()


@router.post("/decompress", status_code=status.HTTP_204_NO_CONTENT)
async def decompress_endpoint(
    decompress_request: DecompressRequest,
    resolver: PathResolver = Depends(get_resolver),
    extractor: ArchiveExtractor = Depends(get_extractor),
):
    await decompress_archive(resolver, extractor, decompress_request.path)
    return _no_content()


@router.post("/categorize", status_code=status.HTTP_204_NO_CONTENT)
async def categorize_endpoint(
    categorize_request: CategorizeRequest,
    resolver: PathResolver = Depends(get_resolver),
):
    """Sort files into category folders under ``currentPath`` by extension"""
    await categorize_entries(
        resolver, categorize_request.paths, categorize_request.current_path
    )
    return _no_content()

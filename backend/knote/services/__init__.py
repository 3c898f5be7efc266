# Services package init
"""
KNote Backend — Services Layer
===============================

What:  Business logic layer sitting between routes (HTTP) and storage.
Why:   Routes handle HTTP, services handle the note and attachment rules.

Service Inventory:
    - MarkupRenderer: CommonMark → HTML fragment
    - ObjectStore / S3ObjectStore: blob put/get against MinIO (boto3)
    - StorageBootstrapper: startup connection + bucket handshake with retry
    - AttachmentService: image upload keys, writes and reads
    - NoteStore / SQLAlchemyNoteStore: note create + list
    - NoteFeedAssembler / NotePublicationWorkflow: feed and form submission
"""

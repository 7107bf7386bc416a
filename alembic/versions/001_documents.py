"""Documents table with change notifications.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # One table for every collection; path is <namespace>/<sessionId|public>/<name>
    op.execute("""
        CREATE TABLE documents (
            path TEXT NOT NULL,
            id TEXT NOT NULL,
            data JSONB NOT NULL,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ DEFAULT now(),
            PRIMARY KEY (path, id)
        );
    """)

    op.execute("""
        CREATE INDEX idx_documents_path ON documents(path);
    """)

    # Live queries LISTEN on document_changes; the payload is the changed path
    op.execute("""
        CREATE OR REPLACE FUNCTION notify_document_change() RETURNS trigger AS $$
        BEGIN
            IF TG_OP = 'DELETE' THEN
                PERFORM pg_notify('document_changes', OLD.path);
                RETURN OLD;
            END IF;
            PERFORM pg_notify('document_changes', NEW.path);
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TRIGGER documents_notify
        AFTER INSERT OR UPDATE OR DELETE ON documents
        FOR EACH ROW EXECUTE FUNCTION notify_document_change();
    """)


def downgrade():
    op.execute("DROP TRIGGER IF EXISTS documents_notify ON documents;")
    op.execute("DROP FUNCTION IF EXISTS notify_document_change();")
    op.execute("DROP TABLE IF EXISTS documents CASCADE;")

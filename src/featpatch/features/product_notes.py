"""Plan that adds a free-text ``notes`` attribute to products across the whole stack.

The backend is an Express + Prisma service and the frontend a React app using
react-query. Each step anchors on text that exists in the unpatched tree and
guards on text that only exists once the change has landed.
"""

from __future__ import annotations

from ..schema import AppendEdit, CreateFileStep, EditFileStep, PatchPlan, ReplaceEdit

PLAN_NAME = "product-notes"
PRODUCT_NOTES_MAX_LENGTH = 1000

SCHEMA_PATH = "backend/prisma/schema.prisma"
MIGRATION_PATH = "backend/prisma/migrations/20260218000000_add_notes_to_products.sql"
BACKEND_CONSTANTS_PATH = "backend/src/constants/products.ts"
FRONTEND_CONSTANTS_PATH = "frontend/src/constants/products.ts"
CONTROLLER_PATH = "backend/src/controllers/products.controller.ts"
REPOSITORY_PATH = "backend/src/repositories/products.repository.ts"
ROUTES_PATH = "backend/src/routes/products.routes.ts"
TYPES_PATH = "frontend/src/types/index.ts"
API_CLIENT_PATH = "frontend/src/api/index.ts"
COMPONENT_PATH = "frontend/src/components/NotesInlineEditor.tsx"
PAGE_PATH = "frontend/src/pages/ProductsPage.tsx"
STYLESHEET_PATH = "frontend/src/styles.css"

# -- schema -------------------------------------------------------------------

SCHEMA_ANCHOR = "  image_url               String?\n"
SCHEMA_FIELD = "  notes                   String?\n"

MIGRATION_SQL = 'ALTER TABLE "products"\nADD COLUMN IF NOT EXISTS "notes" TEXT;\n'

CONSTANTS_MODULE = f"export const PRODUCT_NOTES_MAX_LENGTH = {PRODUCT_NOTES_MAX_LENGTH};\n"

# -- controller ---------------------------------------------------------------

ERROR_IMPORT = 'import { AppError } from "../middleware/errorHandler";\n'
CONSTANTS_IMPORT = 'import { PRODUCT_NOTES_MAX_LENGTH } from "../constants/products";\n'

CONTROLLER_DELETE_HANDLER = """\
  async deleteMany(req: Request, res: Response) {
    const { asins } = req.body as { asins: string[] };
    if (!Array.isArray(asins) || asins.length === 0) {
      throw new AppError(400, "Body must contain non-empty asins array");
    }
    const result = await productsRepository.deleteMany(asins);
    res.json({ deleted: result.count });
  },
"""

CONTROLLER_NOTES_SIGNATURE = "async updateNotes(req: Request, res: Response)"

CONTROLLER_NOTES_HANDLER = """
  async updateNotes(req: Request, res: Response) {
    const { asin } = req.params;
    const { notes } = req.body as { notes?: string | null };

    if (!Object.prototype.hasOwnProperty.call(req.body ?? {}, "notes")) {
      throw new AppError(400, "Body must include notes field");
    }

    if (notes !== null && typeof notes !== "string") {
      throw new AppError(400, "notes must be a string or null");
    }

    const normalizedNotes = typeof notes === "string" ? notes.trim() : null;
    if (normalizedNotes && normalizedNotes.length > PRODUCT_NOTES_MAX_LENGTH) {
      throw new AppError(400, `notes cannot exceed ${PRODUCT_NOTES_MAX_LENGTH} characters`);
    }

    const product = await productsRepository.updateNotes(asin.toUpperCase(), normalizedNotes || null);
    res.json(product);
  },
"""

# -- repository ---------------------------------------------------------------

PRISMA_IMPORT = 'import { prisma } from "../lib/prisma";\n'

REPOSITORY_DELETE_METHOD = """\
  async deleteMany(asins: string[]) {
    return prisma.product.deleteMany({
      where: { asin: { in: asins } },
    });
  },

"""

REPOSITORY_NOTES_SIGNATURE = "async updateNotes(asin: string, notes: string | null)"

REPOSITORY_NOTES_METHOD = """
  async updateNotes(asin: string, notes: string | null) {
    try {
      return await prisma.product.update({
        where: { asin },
        data: { notes },
        include: {
          sellerStatus: true,
          evaluation: true,
          productTags: { include: { tag: true } },
        },
      });
    } catch (error) {
      if (error instanceof Prisma.PrismaClientKnownRequestError && error.code === "P2025") {
        throw new AppError(404, `ASIN ${asin} not found`);
      }
      throw error;
    }
  },

"""

# -- routes -------------------------------------------------------------------

ROUTES_ANCHOR = 'router.get("/:asin", productsController.getOne);\n\n'
ROUTES_NOTES_LINE = 'router.patch("/:asin/notes", productsController.updateNotes);\n'

# -- frontend types and api client ----------------------------------------------

TYPES_ANCHOR = "  image_url: string | null;\n"
TYPES_FIELD = "  notes: string | null;\n"

API_DELETE_METHOD = """\
  deleteMany: (asins: string[]) =>
    api.delete<{ deleted: number }>("/products", { data: { asins } }).then((r) => r.data),
};
"""

API_NOTES_SIGNATURE = "updateNotes: (asin: string, notes: string | null)"

API_NOTES_METHOD = """\
  deleteMany: (asins: string[]) =>
    api.delete<{ deleted: number }>("/products", { data: { asins } }).then((r) => r.data),

  updateNotes: (asin: string, notes: string | null) =>
    api.patch<Product>(`/products/${encodeURIComponent(asin)}/notes`, { notes }).then((r) => r.data),
};
"""

# -- component ----------------------------------------------------------------

NOTES_COMPONENT = """\
import { useEffect, useState } from "react";
import { useMutation, useQueryClient } from "@tanstack/react-query";
import { productsApi } from "../api";
import { PRODUCT_NOTES_MAX_LENGTH } from "../constants/products";

interface NotesInlineEditorProps {
  asin: string;
  currentNotes: string | null;
}

export function NotesInlineEditor({ asin, currentNotes }: NotesInlineEditorProps) {
  const qc = useQueryClient();
  const [value, setValue] = useState(currentNotes ?? "");
  const [error, setError] = useState<string | null>(null);

  useEffect(() => {
    setValue(currentNotes ?? "");
    setError(null);
  }, [currentNotes]);

  const mutation = useMutation({
    mutationFn: (notes: string | null) => productsApi.updateNotes(asin, notes),
    onSuccess: () => {
      setError(null);
      qc.invalidateQueries({ queryKey: ["products"] });
      qc.invalidateQueries({ queryKey: ["product", asin] });
    },
    onError: (err: Error) => {
      setError(err.message || "Failed to save");
    },
  });

  function saveIfChanged() {
    if (mutation.isPending) return;
    const normalized = value.trim();
    const original = (currentNotes ?? "").trim();
    if (normalized === original) return;
    mutation.mutate(normalized || null);
  }

  return (
    <div className="notes-inline-editor">
      <input
        className="notes-inline-input"
        value={value}
        placeholder="Add note..."
        maxLength={PRODUCT_NOTES_MAX_LENGTH}
        onChange={(e) => setValue(e.target.value)}
        onBlur={saveIfChanged}
        onKeyDown={(e) => {
          if (e.key === "Enter") {
            e.preventDefault();
            (e.target as HTMLInputElement).blur();
          }
        }}
        disabled={mutation.isPending}
        title={mutation.isPending ? "Saving..." : "Press Enter to save"}
      />
      <span className="notes-inline-count">{value.length}/{PRODUCT_NOTES_MAX_LENGTH}</span>
      {error && <span className="notes-inline-error">{error}</span>}
    </div>
  );
}
"""

# -- page ---------------------------------------------------------------------

PAGE_GUARD = "<NotesInlineEditor asin={product.asin}"

PAGE_TAG_QUERY = """\
  const { data: allTags = [] } = useQuery<Tag[]>({
    queryKey: ["tags"],
    queryFn: tagsApi.list,
  });

"""

PAGE_TAGS_CELL = """\
                <td className="tags-column">
                  <TagChips
                    asin={product.asin}
                    productTags={product.productTags}
                    allTags={allTags}
                  />
                </td>"""

PAGE_NOTES_CELL = """\
                <td className="notes-column">
                  <NotesInlineEditor asin={product.asin} currentNotes={product.notes} />
                </td>"""

# -- stylesheet ---------------------------------------------------------------

STYLESHEET_GUARD = ".notes-inline-editor"

STYLESHEET_RULES = """

.notes-column { width: 220px; min-width: 220px; max-width: 220px; }
.notes-inline-editor { display: flex; flex-direction: column; gap: 2px; }
.notes-inline-input { width: 100%; border: 1px solid #e2e8f0; border-radius: 6px; padding: 6px 8px; font-size: 12px; color: #334155; background: #fff; }
.notes-inline-input:focus { outline: none; border-color: #3b82f6; box-shadow: 0 0 0 3px rgba(59,130,246,.1); }
.notes-inline-input:disabled { opacity: .7; }
.notes-inline-count { color: #94a3b8; font-size: 11px; line-height: 1.2; text-align: right; }
.notes-inline-error { color: #dc2626; font-size: 11px; line-height: 1.2; }
"""


def build_product_notes_plan() -> PatchPlan:
    """Return the ordered plan that wires product notes through every layer."""
    steps = [
        EditFileStep(
            id="schema",
            path=SCHEMA_PATH,
            description="Add the nullable notes column to the Product model.",
            edits=[ReplaceEdit(anchor=SCHEMA_ANCHOR, replacement=SCHEMA_ANCHOR + SCHEMA_FIELD, guard=SCHEMA_FIELD.strip())],
        ),
        CreateFileStep(
            id="migration",
            path=MIGRATION_PATH,
            content=MIGRATION_SQL,
            overwrite=True,
            description="SQL migration adding products.notes.",
        ),
        CreateFileStep(
            id="backend-constants",
            path=BACKEND_CONSTANTS_PATH,
            content=CONSTANTS_MODULE,
            overwrite=True,
            description="Backend notes length limit.",
        ),
        CreateFileStep(
            id="frontend-constants",
            path=FRONTEND_CONSTANTS_PATH,
            content=CONSTANTS_MODULE,
            overwrite=True,
            description="Frontend notes length limit.",
        ),
        EditFileStep(
            id="controller",
            path=CONTROLLER_PATH,
            description="Validate and persist notes in a PATCH handler.",
            edits=[
                ReplaceEdit(
                    anchor=ERROR_IMPORT,
                    replacement=ERROR_IMPORT + CONSTANTS_IMPORT,
                    guard=CONSTANTS_IMPORT.rstrip("\n"),
                ),
                ReplaceEdit(
                    anchor=CONTROLLER_DELETE_HANDLER,
                    replacement=CONTROLLER_DELETE_HANDLER + CONTROLLER_NOTES_HANDLER,
                    guard=CONTROLLER_NOTES_SIGNATURE,
                ),
            ],
        ),
        EditFileStep(
            id="repository",
            path=REPOSITORY_PATH,
            description="Update a product's notes, mapping unknown ASINs to 404.",
            guard=REPOSITORY_NOTES_SIGNATURE,
            edits=[
                ReplaceEdit(
                    anchor=PRISMA_IMPORT,
                    replacement=PRISMA_IMPORT + ERROR_IMPORT,
                    guard=ERROR_IMPORT.rstrip("\n"),
                ),
                ReplaceEdit(
                    anchor=REPOSITORY_DELETE_METHOD,
                    replacement=REPOSITORY_DELETE_METHOD + REPOSITORY_NOTES_METHOD,
                    guard=REPOSITORY_NOTES_SIGNATURE,
                ),
            ],
        ),
        EditFileStep(
            id="routes",
            path=ROUTES_PATH,
            description="Register PATCH /:asin/notes.",
            edits=[
                ReplaceEdit(
                    anchor=ROUTES_ANCHOR,
                    replacement=ROUTES_ANCHOR + ROUTES_NOTES_LINE + "\n",
                    guard=ROUTES_NOTES_LINE,
                ),
            ],
        ),
        EditFileStep(
            id="types",
            path=TYPES_PATH,
            description="Expose notes on the Product type.",
            edits=[ReplaceEdit(anchor=TYPES_ANCHOR, replacement=TYPES_ANCHOR + TYPES_FIELD, guard=TYPES_FIELD.rstrip("\n"))],
        ),
        EditFileStep(
            id="api-client",
            path=API_CLIENT_PATH,
            description="Add productsApi.updateNotes.",
            edits=[ReplaceEdit(anchor=API_DELETE_METHOD, replacement=API_NOTES_METHOD, guard=API_NOTES_SIGNATURE)],
        ),
        CreateFileStep(
            id="component",
            path=COMPONENT_PATH,
            content=NOTES_COMPONENT,
            overwrite=True,
            description="Inline notes editor saving on blur or Enter.",
        ),
        EditFileStep(
            id="page",
            path=PAGE_PATH,
            guard=PAGE_GUARD,
            description="Replace the tags column of the products table with the notes editor.",
            edits=[
                ReplaceEdit(
                    anchor='import { productsApi, importApi, tagsApi } from "../api";',
                    replacement='import { productsApi, importApi } from "../api";',
                    optional=True,
                ),
                ReplaceEdit(
                    anchor='import type { Product, Tag } from "../types";',
                    replacement='import type { Product } from "../types";',
                    optional=True,
                ),
                ReplaceEdit(
                    anchor='import { TagChips } from "../components/TagChips";',
                    replacement='import { NotesInlineEditor } from "../components/NotesInlineEditor";',
                ),
                ReplaceEdit(anchor=PAGE_TAG_QUERY, replacement="", optional=True),
                ReplaceEdit(
                    anchor='<th className="tags-column">Tags</th>',
                    replacement='<th className="notes-column">Notes</th>',
                ),
                ReplaceEdit(anchor=PAGE_TAGS_CELL, replacement=PAGE_NOTES_CELL),
            ],
        ),
        EditFileStep(
            id="stylesheet",
            path=STYLESHEET_PATH,
            description="Styles for the notes column and editor.",
            edits=[AppendEdit(text=STYLESHEET_RULES, guard=STYLESHEET_GUARD)],
        ),
    ]
    return PatchPlan(
        name=PLAN_NAME,
        description="Add a free-text notes attribute to products.",
        steps=steps,
    )


__all__ = [
    "PLAN_NAME",
    "PRODUCT_NOTES_MAX_LENGTH",
    "build_product_notes_plan",
]

from stockledger.core.logging import setup_logging
from stockledger.database import create_schema


def main():
    setup_logging()
    create_schema()
    print("Schema created.")


if __name__ == "__main__":
    main()
